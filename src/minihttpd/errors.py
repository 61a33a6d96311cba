"""Exception taxonomy for request handling.

Every ``HttpError`` maps to exactly one status code and turns into a single
best-effort response. Nothing is retried.
"""


class HttpError(Exception):
    """Base class for errors that become an HTTP response."""

    status: int = 500

    def __init__(self, message: str = "", *, status: int | None = None):
        super().__init__(message)
        if status is not None:
            self.status = status


class ProtocolError(HttpError):
    """Malformed request line, unsupported version or method."""

    status = 400


class NotFound(HttpError):
    """Requested route or file does not exist."""

    status = 404


class Internal(HttpError):
    """Filesystem or stream failure while serving a request."""

    status = 500


class ResponseWriteError(Exception):
    """Sending to the client failed. Logged only, never answered."""


class ConfigError(Exception):
    """Raised when the server configuration is unusable."""
