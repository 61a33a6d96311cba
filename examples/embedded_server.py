"""
Embedded server example

Runs minihttpd inside an existing AnyIO program with one extra route.

- Each TCP connection is handled in the server's TaskGroup.
- One request per connection, the server closes the socket afterwards.

Run:
  uv run python examples/embedded_server.py

Then try:
  curl -i http://127.0.0.1:8080/
  curl -i http://127.0.0.1:8080/health
  curl -i http://127.0.0.1:8080/echo/hello
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

import anyio
from typing_extensions import override

from minihttpd import HttpServer, Request, Response, RouteContext, Router, ServerConfig
from minihttpd.http.router import DEFAULT_ROUTES, ExactRoute


class HealthRoute(ExactRoute):
    path = "/health"
    methods = frozenset({"GET"})

    @override
    async def handle(self, request: Request, ctx: RouteContext) -> Response | None:
        return Response.text("ok")


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    with tempfile.TemporaryDirectory() as directory:
        config = ServerConfig(host="127.0.0.1", port=8080, directory=Path(directory)).validated()
        server = HttpServer(config, router=Router((HealthRoute(), *DEFAULT_ROUTES)))

        async with anyio.create_task_group() as tg:
            port = await tg.start(server.serve)
            print(f"Listening on http://127.0.0.1:{port}")
            print("Press Ctrl-C to stop.")


if __name__ == "__main__":
    anyio.run(main)
