"""Command line entry point: ``minihttpd --directory /srv/files``."""

from __future__ import annotations

import logging
from typing import Sequence

import anyio

from .config import parse_args
from .errors import ConfigError
from .server import HttpServer


logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    options = parse_args(argv)
    logging.basicConfig(
        level=options.log_level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    try:
        config = options.config.validated()
    except ConfigError as e:
        logger.error("%s", e)
        return 1

    server = HttpServer(config)
    try:
        anyio.run(server.serve)
    except KeyboardInterrupt:
        logger.info("Shutting down")
    except OSError as e:
        logger.error("Failed to bind to %s:%d: %s", config.host, config.port, e)
        return 1
    return 0
