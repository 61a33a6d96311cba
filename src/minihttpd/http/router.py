"""Route table and dispatch.

Each route owns its header scan: a route that needs no headers never reads
past the request line, and a route that needs some asks the reader for
exactly those fields.
"""

from __future__ import annotations

import gzip
from dataclasses import dataclass
from typing import Sequence

from typing_extensions import override

from ..config import ServerConfig
from .files import download, resolve_target, upload
from .request import ACCEPT_ENCODING, CONTENT_LENGTH, HTTP_VERSION, USER_AGENT, Method, Request, RequestReader
from .response import Response, ResponseWriter


SUPPORTED_ENCODINGS = ("gzip",)


@dataclass(frozen=True, slots=True)
class RouteContext:
    """Everything a route may touch for one request."""

    config: ServerConfig
    reader: RequestReader
    writer: ResponseWriter


def negotiate_encoding(accept_encoding: str) -> str | None:
    """Pick a content coding from a comma separated Accept-Encoding value."""
    offered = {token.strip(" ") for token in accept_encoding.split(",")}
    for encoding in SUPPORTED_ENCODINGS:
        if encoding in offered:
            return encoding
    return None


def gzip_body(data: bytes) -> bytes:
    return gzip.compress(data)


class Route:
    """Base route. Subclasses match a path and produce a response.

    ``handle()`` returns None when it already wrote its own response.
    """

    methods: frozenset[str] = frozenset({Method.GET.value, Method.POST.value})

    def matches(self, path: str) -> bool:
        raise NotImplementedError(f"{self.__class__.__name__}.matches not implemented")

    async def handle(self, request: Request, ctx: RouteContext) -> Response | None:
        raise NotImplementedError(f"{self.__class__.__name__}.handle not implemented")


class ExactRoute(Route):
    path: str = "/"

    @override
    def matches(self, path: str) -> bool:
        return path == self.path


class PrefixRoute(Route):
    prefix: str = "/"

    @override
    def matches(self, path: str) -> bool:
        return path.startswith(self.prefix)

    def remainder(self, path: str) -> str:
        return path[len(self.prefix):]


class RootRoute(ExactRoute):
    path = "/"

    @override
    async def handle(self, request: Request, ctx: RouteContext) -> Response | None:
        return Response.empty(200)


class UserAgentRoute(ExactRoute):
    path = "/user-agent"

    @override
    async def handle(self, request: Request, ctx: RouteContext) -> Response | None:
        request = request.with_headers(await ctx.reader.scan_headers(USER_AGENT))
        return Response.text(request.headers.get(USER_AGENT, ""))


class EchoRoute(PrefixRoute):
    prefix = "/echo/"

    @override
    async def handle(self, request: Request, ctx: RouteContext) -> Response | None:
        body = self.remainder(request.path).encode("iso-8859-1")
        request = request.with_headers(await ctx.reader.scan_headers(ACCEPT_ENCODING))
        encoding = negotiate_encoding(request.headers.get(ACCEPT_ENCODING, ""))
        if encoding == "gzip":
            return Response(body=gzip_body(body), extra_headers=("Content-Encoding: gzip",))
        return Response(body=body)


class FilesRoute(PrefixRoute):
    prefix = "/files/"

    @override
    async def handle(self, request: Request, ctx: RouteContext) -> Response | None:
        target = await resolve_target(ctx.config.directory, self.remainder(request.path))
        if request.known_method is Method.GET:
            await download(target, ctx.writer)
            return None
        request = request.with_headers(await ctx.reader.scan_headers(CONTENT_LENGTH))
        return await upload(target, ctx.reader, request.body_length)


DEFAULT_ROUTES: tuple[Route, ...] = (
    RootRoute(),
    UserAgentRoute(),
    EchoRoute(),
    FilesRoute(),
)


class Router:
    """Dispatches a parsed request line to the first matching route."""

    def __init__(self, routes: Sequence[Route] | None = None):
        self._routes: tuple[Route, ...] = tuple(DEFAULT_ROUTES if routes is None else routes)

    @property
    def routes(self) -> tuple[Route, ...]:
        return self._routes

    async def dispatch(self, request: Request, ctx: RouteContext) -> Response | None:
        if request.version != HTTP_VERSION:
            return Response.empty(400)
        if request.known_method is None:
            return Response.empty(501)
        for route in self._routes:
            if route.matches(request.path) and request.method in route.methods:
                return await route.handle(request, ctx)
        return Response.empty(404)


__all__ = [
    "DEFAULT_ROUTES",
    "EchoRoute",
    "ExactRoute",
    "FilesRoute",
    "PrefixRoute",
    "RootRoute",
    "Route",
    "RouteContext",
    "Router",
    "UserAgentRoute",
    "gzip_body",
    "negotiate_encoding",
]
