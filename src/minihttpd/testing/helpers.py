"""In-memory streams and response parsing for tests."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterable

import anyio
from anyio.abc import ByteStream
from anyio.lowlevel import checkpoint


class ScriptedStream(ByteStream):
    """A ByteStream that replays scripted chunks and records what is sent.

    Each scripted chunk is delivered by its own ``receive()`` call, so a test
    controls exactly how the request is split across reads. ``fail_after``
    makes every send after that many successful sends raise
    ``BrokenResourceError``. ``events`` records receives and sends in order.
    """

    def __init__(self, chunks: Iterable[bytes] = (), *, fail_after: int | None = None):
        self._chunks: deque[bytes] = deque(chunks)
        self._fail_after = fail_after
        self.sent = bytearray()
        self.send_calls = 0
        self.closed = False
        self.eof_sent = False
        self.events: list[tuple[str, bytes]] = []

    @property
    def unread(self) -> bytes:
        return b"".join(self._chunks)

    async def receive(self, max_bytes: int = 65536) -> bytes:
        await checkpoint()
        if self.closed:
            raise anyio.ClosedResourceError
        if not self._chunks:
            raise anyio.EndOfStream
        chunk = self._chunks.popleft()
        if len(chunk) > max_bytes:
            self._chunks.appendleft(chunk[max_bytes:])
            chunk = chunk[:max_bytes]
        self.events.append(("recv", chunk))
        return chunk

    async def send(self, item: bytes) -> None:
        await checkpoint()
        self.send_calls += 1
        if self._fail_after is not None and self.send_calls > self._fail_after:
            raise anyio.BrokenResourceError
        self.sent.extend(item)
        self.events.append(("send", bytes(item)))

    async def send_eof(self) -> None:
        self.eof_sent = True

    async def aclose(self) -> None:
        self.closed = True


@dataclass(frozen=True, slots=True)
class ParsedResponse:
    status: int
    reason: str
    headers: list[tuple[str, str]]
    body: bytes
    trailer: bytes

    def header(self, name: str) -> str | None:
        for key, value in self.headers:
            if key == name:
                return value
        return None


def parse_response(raw: bytes) -> ParsedResponse:
    """Split a raw response into status, headers, counted body and leftover bytes."""
    head, sep, rest = raw.partition(b"\r\n\r\n")
    if not sep:
        raise ValueError(f"no header terminator in {raw!r}")
    lines = head.decode("iso-8859-1").split("\r\n")
    version, status, reason = lines[0].split(" ", 2)
    if version != "HTTP/1.1":
        raise ValueError(f"unexpected version {version!r}")
    headers: list[tuple[str, str]] = []
    for line in lines[1:]:
        name, _, value = line.partition(": ")
        headers.append((name, value))
    length = int(dict(headers).get("Content-Length", "0"))
    return ParsedResponse(
        status=int(status),
        reason=reason,
        headers=headers,
        body=rest[:length],
        trailer=rest[length:],
    )


async def send_request(host: str, port: int, payload: bytes) -> bytes:
    """Send ``payload`` over TCP and read until the server closes."""
    async with await anyio.connect_tcp(host, port) as stream:
        await stream.send(payload)
        received = bytearray()
        while True:
            try:
                received.extend(await stream.receive())
            except anyio.EndOfStream:
                break
        return bytes(received)
