"""Response model and the two-phase response writer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import anyio
from anyio.abc import ByteSendStream

from ..errors import ResponseWriteError
from .request import HTTP_VERSION


TEXT_PLAIN = "text/plain"
OCTET_STREAM = "application/octet-stream"

STATUS_TEXT: dict[int, str] = {
    200: "OK",
    201: "Created",
    400: "Bad Request",
    404: "Not Found",
    500: "Internal Server Error",
    501: "Not Implemented",
}


def reason(status: int) -> str:
    return STATUS_TEXT[status]


def _status_line(status: int) -> str:
    return f"{HTTP_VERSION} {status} {reason(status)}\r\n"


@dataclass(frozen=True, slots=True)
class Response:
    """A fully generated response.

    ``extra_headers`` are raw header lines without the CRLF terminator.
    Content-Length is never stored; it is computed from ``body`` on write.
    """

    status: int = 200
    body: bytes = b""
    extra_headers: tuple[str, ...] = ()
    content_type: str = TEXT_PLAIN

    @staticmethod
    def empty(status: int) -> "Response":
        return Response(status=status)

    @staticmethod
    def text(
        text: str,
        *,
        status: int = 200,
        extra_headers: Sequence[str] = (),
        encoding: str = "iso-8859-1",
    ) -> "Response":
        return Response(status=status, body=text.encode(encoding), extra_headers=tuple(extra_headers))


def serialize_head(
    status: int,
    *,
    content_type: str,
    content_length: int,
    extra_headers: Sequence[str] = (),
) -> bytes:
    head = _status_line(status)
    head += "".join(f"{line}\r\n" for line in extra_headers)
    head += f"Content-Type: {content_type}\r\n"
    head += f"Content-Length: {content_length}\r\n"
    return (head + "\r\n").encode("iso-8859-1")


def serialize(response: Response) -> bytes:
    # Generated bodies keep a trailing CRLF after the counted body bytes.
    head = serialize_head(
        response.status,
        content_type=response.content_type,
        content_length=len(response.body),
        extra_headers=response.extra_headers,
    )
    return head + response.body + b"\r\n"


class ResponseWriter:
    """Writes exactly one response to a stream, in a header then body phase.

    Once the header phase starts the response is committed: later failures
    cannot change the status line and nothing is ever resent.
    """

    def __init__(self, stream: ByteSendStream):
        self._stream = stream
        self._committed = False
        self._bytes_sent = 0

    @property
    def committed(self) -> bool:
        return self._committed

    @property
    def bytes_sent(self) -> int:
        return self._bytes_sent

    async def _write(self, data: bytes) -> None:
        try:
            await self._stream.send(data)
        except (anyio.BrokenResourceError, anyio.ClosedResourceError, OSError) as e:
            raise ResponseWriteError(f"error sending response: {e!r}") from e
        self._bytes_sent += len(data)

    def _commit(self) -> None:
        if self._committed:
            raise RuntimeError("response already committed")
        self._committed = True

    async def send(self, response: Response) -> int:
        """Send a generated response in one write. Returns the bytes written."""
        self._commit()
        payload = serialize(response)
        await self._write(payload)
        return len(payload)

    async def send_head(
        self,
        status: int,
        *,
        content_type: str,
        content_length: int,
        extra_headers: Sequence[str] = (),
    ) -> None:
        self._commit()
        await self._write(
            serialize_head(
                status,
                content_type=content_type,
                content_length=content_length,
                extra_headers=extra_headers,
            )
        )

    async def send_body(self, chunk: bytes) -> None:
        if not self._committed:
            raise RuntimeError("send_head() must be called before send_body()")
        await self._write(chunk)


__all__ = [
    "OCTET_STREAM",
    "Response",
    "ResponseWriter",
    "STATUS_TEXT",
    "TEXT_PLAIN",
    "reason",
    "serialize",
    "serialize_head",
]
