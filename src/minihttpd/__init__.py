"""Minimal one-request-per-connection HTTP/1.1 server on AnyIO."""

from .config import ServerConfig
from .errors import ConfigError, HttpError, Internal, NotFound, ProtocolError, ResponseWriteError
from .http import Method, Request, RequestReader, Response, ResponseWriter, Route, RouteContext, Router
from .server import HttpServer, handle_connection

__all__ = [
    # Configuration
    "ServerConfig",
    # Errors
    "ConfigError",
    "HttpError",
    "Internal",
    "NotFound",
    "ProtocolError",
    "ResponseWriteError",
    # Protocol
    "Method",
    "Request",
    "RequestReader",
    "Response",
    "ResponseWriter",
    "Route",
    "RouteContext",
    "Router",
    # Server
    "HttpServer",
    "handle_connection",
]
