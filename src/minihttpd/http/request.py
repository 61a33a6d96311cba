"""Request line parsing and route-scoped header scanning.

Only the request line is read eagerly. Header lines stay on the wire until
the route that needs them calls ``RequestReader.scan_headers()``, which stops
at the blank line so the body is left untouched for the upload route.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import AsyncIterator, Mapping

import anyio
from anyio.abc import ByteReceiveStream
from anyio.streams.buffered import BufferedByteReceiveStream

from ..errors import Internal, ProtocolError


HTTP_VERSION = "HTTP/1.1"
MAX_LINE_BYTES = 8 * 1024
CHUNK_SIZE = 64 * 1024

USER_AGENT = "User-Agent"
ACCEPT_ENCODING = "Accept-Encoding"
CONTENT_LENGTH = "Content-Length"


class Method(str, Enum):
    GET = "GET"
    POST = "POST"


@dataclass(frozen=True, slots=True)
class Request:
    """One parsed request line plus whatever headers a route scanned.

    ``method`` keeps the raw request-line token, so a method this server
    does not implement still reaches dispatch and is answered with 501.
    Use ``known_method`` once the token matters.
    """

    method: str
    path: str
    version: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body_length: int = 0

    @property
    def known_method(self) -> Method | None:
        try:
            return Method(self.method)
        except ValueError:
            return None

    def with_headers(self, headers: Mapping[str, str]) -> "Request":
        return replace(
            self,
            headers=dict(headers),
            body_length=content_length(headers),
        )


def parse_request_line(line: bytes) -> Request:
    """Parse ``METHOD SP PATH SP VERSION`` (CRLF already stripped)."""
    text = line.decode("iso-8859-1")
    parts = text.split(" ")
    if len(parts) != 3 or not all(parts):
        raise ProtocolError("invalid request line")
    method, path, version = parts
    return Request(method=method, path=path, version=version)


def content_length(headers: Mapping[str, str]) -> int:
    # Absent or malformed values count as an empty body.
    raw = headers.get(CONTENT_LENGTH, "")
    if not (raw.isascii() and raw.isdigit()):
        return 0
    return int(raw)


class RequestReader:
    """Cursor over one connection's receive side."""

    def __init__(self, stream: ByteReceiveStream, *, max_line_bytes: int = MAX_LINE_BYTES):
        self._buffered = BufferedByteReceiveStream(stream)
        self._max_line_bytes = max_line_bytes
        self._headers_scanned = False

    @property
    def headers_scanned(self) -> bool:
        return self._headers_scanned

    async def _read_line(self) -> bytes:
        try:
            return await self._buffered.receive_until(b"\r\n", self._max_line_bytes)
        except anyio.DelimiterNotFound as e:
            raise ProtocolError("line too long") from e

    async def read_request_line(self) -> Request | None:
        """Read and parse the request line.

        Returns None if the peer closed the connection before sending a byte.
        """
        try:
            line = await self._read_line()
        except anyio.IncompleteRead as e:
            if not self._buffered.buffer:
                return None
            raise ProtocolError("truncated request line") from e
        return parse_request_line(line)

    async def scan_headers(self, *names: str) -> dict[str, str]:
        """Read header lines up to the blank line, keeping only ``names``.

        Matching is an exact, case-sensitive ``"<Name>: "`` prefix test and the
        first occurrence of a field wins. A peer that closes before the blank
        line ends the scan with whatever was collected.
        """
        if self._headers_scanned:
            raise RuntimeError("headers were already scanned for this request")
        self._headers_scanned = True

        prefixes = {name: f"{name}: " for name in names}
        found: dict[str, str] = {}
        while True:
            try:
                raw = await self._read_line()
            except anyio.IncompleteRead:
                break
            if not raw:
                break
            line = raw.decode("iso-8859-1")
            for name, prefix in prefixes.items():
                if name not in found and line.startswith(prefix):
                    found[name] = line[len(prefix):]
        return found

    async def read_body(self, length: int) -> AsyncIterator[bytes]:
        """Yield chunks until exactly ``length`` bytes have been received.

        Raises Internal if the stream ends or breaks before that.
        """
        remaining = length
        while remaining > 0:
            try:
                chunk = await self._buffered.receive(min(remaining, CHUNK_SIZE))
            except anyio.EndOfStream as e:
                raise Internal(
                    f"request body ended after {length - remaining} of {length} bytes"
                ) from e
            except (anyio.BrokenResourceError, OSError) as e:
                raise Internal(f"error reading connection stream: {e}") from e
            remaining -= len(chunk)
            yield chunk

    async def discard(self, max_bytes: int) -> int:
        """Read and drop input until EOF or ``max_bytes``. Returns the count."""
        discarded = 0
        while discarded < max_bytes:
            try:
                chunk = await self._buffered.receive(min(CHUNK_SIZE, max_bytes - discarded))
            except (anyio.EndOfStream, anyio.BrokenResourceError, anyio.ClosedResourceError, OSError):
                break
            discarded += len(chunk)
        return discarded


__all__ = [
    "ACCEPT_ENCODING",
    "CONTENT_LENGTH",
    "HTTP_VERSION",
    "Method",
    "Request",
    "RequestReader",
    "USER_AGENT",
    "content_length",
    "parse_request_line",
]
