import pytest

from minihttpd import ServerConfig, handle_connection
from minihttpd.testing import ScriptedStream


@pytest.fixture
def serve_dir(tmp_path):
    directory = tmp_path / "srv"
    directory.mkdir()
    return directory


@pytest.fixture
def config(serve_dir):
    return ServerConfig(host="127.0.0.1", port=0, directory=serve_dir).validated()


@pytest.fixture
def exchange(config):
    """Run one connection over a ScriptedStream and return the stream."""

    async def _exchange(*chunks: bytes, fail_after: int | None = None) -> ScriptedStream:
        stream = ScriptedStream(chunks, fail_after=fail_after)
        await handle_connection(stream, config)
        return stream

    return _exchange
