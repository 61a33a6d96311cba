"""HTTP/1.1 request parsing, routing and response writing."""

from .request import HTTP_VERSION, Method, Request, RequestReader
from .response import Response, ResponseWriter
from .router import Route, RouteContext, Router

__all__ = [
    "HTTP_VERSION",
    "Method",
    "Request",
    "RequestReader",
    "Response",
    "ResponseWriter",
    "Route",
    "RouteContext",
    "Router",
]
