"""TCP listener and the per-connection request pipeline.

Features:
- One request per connection, the connection is closed afterwards
- One AnyIO task per accepted connection, all inside the server's TaskGroup
- No timeouts and no connection limit: a silent client holds its task
- After the response, unread input is drained for at most LINGER_SECONDS
  so the close does not reset the connection
"""

from __future__ import annotations

import logging
from contextlib import suppress

import anyio
from anyio.abc import ByteStream, SocketAttribute, TaskStatus

from .config import ServerConfig
from .errors import HttpError, ResponseWriteError
from .http.request import Request, RequestReader
from .http.response import Response, ResponseWriter
from .http.router import RouteContext, Router


logger = logging.getLogger(__name__)

LINGER_SECONDS = 2.0
LINGER_MAX_BYTES = 64 * 1024 * 1024


def _peer(stream: ByteStream) -> str:
    address = stream.extra(SocketAttribute.remote_address, None)
    if isinstance(address, tuple):
        return f"{address[0]}:{address[1]}"
    return str(address) if address is not None else "unknown"


async def _serve_request(
    reader: RequestReader,
    writer: ResponseWriter,
    config: ServerConfig,
    router: Router,
    peer: str,
) -> None:
    request: Request | None = None
    try:
        request = await reader.read_request_line()
        if request is None:
            logger.debug("%s: Connection closed before a request line", peer)
            return
        response = await router.dispatch(request, RouteContext(config, reader, writer))
    except ResponseWriteError:
        raise
    except HttpError as e:
        if writer.committed:
            logger.error("%s: Request failed after the response was committed: %s", peer, e)
            return
        logger.info("%s: Request failed with %d: %s", peer, e.status, e)
        response = Response.empty(e.status)
    except Exception:
        if writer.committed:
            logger.exception("%s: Unhandled error after the response was committed", peer)
            return
        logger.exception("%s: Unhandled error while serving request", peer)
        response = Response.empty(500)

    if response is None:
        # The route streamed its own response.
        status = 200
    else:
        status = response.status
        expected = await writer.send(response)
        logger.debug("%s: Sent %d bytes to client (expected: %d)", peer, writer.bytes_sent, expected)

    if request is not None:
        logger.info("%s: %s %s -> %d", peer, request.method, request.path, status)


async def handle_connection(
    stream: ByteStream,
    config: ServerConfig,
    router: Router | None = None,
) -> None:
    """Serve exactly one request on ``stream`` and close it."""
    router = router or Router()
    peer = _peer(stream)
    reader = RequestReader(stream)
    async with stream:
        try:
            await _serve_request(reader, ResponseWriter(stream), config, router, peer)
        except ResponseWriteError as e:
            logger.error("%s: %s", peer, e)
            return
        await _linger(stream, reader, peer)


async def _linger(stream: ByteStream, reader: RequestReader, peer: str) -> None:
    # Closing with unread input makes the kernel send RST, which can destroy the
    # response before the client reads it. Half-close, then drain.
    with suppress(anyio.BrokenResourceError, anyio.ClosedResourceError, OSError):
        await stream.send_eof()
    with anyio.move_on_after(LINGER_SECONDS):
        discarded = await reader.discard(LINGER_MAX_BYTES)
        if discarded:
            logger.debug("%s: Discarded %d unread request bytes", peer, discarded)


class HttpServer:
    """Binds one TCP port and serves each connection in its own task.

    The bound port is reported through ``task_status``, so with ``port=0``::

        port = await task_group.start(server.serve)
    """

    def __init__(self, config: ServerConfig, *, router: Router | None = None):
        self._config = config
        self._router = router or Router()

    @property
    def config(self) -> ServerConfig:
        return self._config

    async def serve(self, *, task_status: TaskStatus[int] = anyio.TASK_STATUS_IGNORED) -> None:
        listener = await anyio.create_tcp_listener(
            local_host=self._config.host,
            local_port=self._config.port,
        )
        port = listener.extra(SocketAttribute.local_port)
        logger.info("Listening for connections on %s:%d", self._config.host, port)
        logger.info("Serving files from %s", self._config.directory)

        async with listener, anyio.create_task_group() as tg:
            task_status.started(port)
            await listener.serve(self._handle_client, task_group=tg)

    async def _handle_client(self, stream: ByteStream) -> None:
        logger.info("Client connected %s", _peer(stream))
        await handle_connection(stream, self._config, self._router)


__all__ = ["HttpServer", "handle_connection"]
