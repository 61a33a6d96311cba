"""Server configuration: command line flags with environment defaults."""

from __future__ import annotations

import argparse
import logging
import os
import stat
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Sequence

from .errors import ConfigError


DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 4221
DEFAULT_DIRECTORY = "."


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Process-wide settings, read-only for the lifetime of the server."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    directory: Path = Path(DEFAULT_DIRECTORY)

    def validated(self) -> "ServerConfig":
        """Return a copy with an absolute serving directory.

        Raises ConfigError if the directory is missing or is not a directory.
        """
        try:
            info = self.directory.stat()
        except OSError as e:
            raise ConfigError(f"failed to check directory path: {e}") from e
        if not stat.S_ISDIR(info.st_mode):
            raise ConfigError(f"invalid directory path {self.directory}")
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"invalid port {self.port}")
        return replace(self, directory=self.directory.resolve())


@dataclass(frozen=True, slots=True)
class CliOptions:
    config: ServerConfig
    log_level: int


def _env_port(raw: str | None) -> int:
    if raw is None or raw == "":
        return DEFAULT_PORT
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"invalid MINIHTTPD_PORT value: {raw!r}") from e


def build_parser() -> argparse.ArgumentParser:
    env = os.environ
    parser = argparse.ArgumentParser(
        prog="minihttpd",
        description="Serve echo, user-agent and file routes over HTTP/1.1",
    )
    parser.add_argument(
        "--host",
        default=env.get("MINIHTTPD_HOST", DEFAULT_HOST),
        help="interface ip/host (default: %(default)s)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help=f"tcp port to listen for connections (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "--directory",
        default=env.get("MINIHTTPD_DIRECTORY", DEFAULT_DIRECTORY),
        help="directory from which to serve files (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging verbosity (default: %(default)s)",
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> CliOptions:
    """Parse command line flags. Flags take precedence over MINIHTTPD_* variables."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        port = args.port if args.port is not None else _env_port(os.environ.get("MINIHTTPD_PORT"))
    except ConfigError as e:
        parser.error(str(e))
    config = ServerConfig(host=args.host, port=port, directory=Path(args.directory))
    return CliOptions(config=config, log_level=getattr(logging, args.log_level))


__all__ = ["CliOptions", "ServerConfig", "build_parser", "parse_args"]
