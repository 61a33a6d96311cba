"""File download and upload against the serving directory."""

from __future__ import annotations

import logging
import os
import stat
from contextlib import suppress
from pathlib import Path

import anyio

from ..errors import Internal, NotFound
from .request import CHUNK_SIZE, RequestReader
from .response import OCTET_STREAM, Response, ResponseWriter


logger = logging.getLogger(__name__)


async def resolve_target(directory: Path, name: str) -> anyio.Path:
    """Join ``name`` onto the serving directory.

    Anything that resolves outside the directory is reported as missing.
    An empty name resolves to the directory itself.
    """
    root = await anyio.Path(directory).resolve()
    target = await (root / name).resolve()
    if not target.is_relative_to(root):
        raise NotFound(f"{name!r} escapes the serving directory")
    return target


async def download(path: anyio.Path, writer: ResponseWriter) -> None:
    """Stream ``path`` as a 200 response.

    Errors before the header phase raise NotFound or Internal. After it, a read
    failure can only be logged; the declared status and length stand.
    """
    try:
        info = await path.stat()
    except FileNotFoundError as e:
        raise NotFound(f"no such file {path}") from e
    except OSError as e:
        raise Internal(f"failed to stat {path}: {e}") from e
    if stat.S_ISDIR(info.st_mode):
        raise Internal(f"{path} is a directory")

    try:
        file = await anyio.open_file(path, "rb")
    except OSError as e:
        raise Internal(f"failed to open {path}: {e}") from e

    async with file:
        try:
            size = await file.seek(0, os.SEEK_END)
            await file.seek(0)
        except OSError as e:
            raise Internal(f"failed to size {path}: {e}") from e

        await writer.send_head(200, content_type=OCTET_STREAM, content_length=size)

        sent = 0
        try:
            while sent < size:
                chunk = await file.read(min(CHUNK_SIZE, size - sent))
                if not chunk:
                    break
                await writer.send_body(chunk)
                sent += len(chunk)
        except OSError as e:
            logger.error("Error reading %s after headers were sent (%d of %d bytes): %s", path, sent, size, e)
            return

    if sent < size:
        logger.error("File %s shrank while serving (%d of %d bytes)", path, sent, size)
        return
    logger.info("Served file %s to client", path)


async def upload(path: anyio.Path, reader: RequestReader, length: int) -> Response:
    """Write the request body verbatim to ``path`` and answer 201 Created.

    The body is exactly ``length`` bytes, read across as many receives as
    it takes. A body that ends early is an Internal error and the partial
    file is removed.
    """
    try:
        file = await anyio.open_file(path, "wb")
    except OSError as e:
        raise Internal(f"failed to create {path}: {e}") from e

    received = 0
    try:
        async with file:
            async for chunk in reader.read_body(length):
                await file.write(chunk)
                received += len(chunk)
    except (Internal, OSError) as e:
        logger.warning("Upload to %s failed after %d of %d bytes: %s", path, received, length, e)
        with suppress(OSError):
            await path.unlink()
        if isinstance(e, Internal):
            raise
        raise Internal(f"failed to write {path}: {e}") from e

    logger.info("Received file %s from client (bytes %d)", path, received)
    return Response.empty(201)


__all__ = ["download", "resolve_target", "upload"]
