"""Aim trainer JSON-lines server entry point.

Usage: python -m aimtrainer.server

Reads JSON requests from stdin (one per line), writes JSON responses to stdout.
All logging goes to stderr to keep the protocol clean.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from .handler import ServerHandler
from .protocol import Notification, Request, Response

logger = logging.getLogger("aimtrainer.server")


async def main() -> None:
    loop = asyncio.get_event_loop()

    def write_line(text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    def write_notification(notification: Notification) -> None:
        write_line(notification.to_json_line())

    handler = ServerHandler(write_notification=write_notification)

    logger.info("aimtrainer-server: ready")

    reader = asyncio.StreamReader()
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin)

    while True:
        line = await reader.readline()
        if not line:
            break  # stdin closed

        line_str = line.decode("utf-8", errors="replace").strip()
        if not line_str:
            continue

        try:
            request = Request.from_line(line_str)
        except ValueError as e:
            resp = Response(id=0, error=f"Invalid request: {e}")
            write_line(resp.to_json_line())
            continue

        try:
            result = await handler.dispatch({"method": request.method, "params": request.params})
            resp = Response(id=request.id, result=result)
        except Exception as e:
            logger.error("aimtrainer-server: error: %s", e)
            resp = Response(id=request.id, error=str(e))

        write_line(resp.to_json_line())


def run() -> None:
    logging.basicConfig(stream=sys.stderr, level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(main())


if __name__ == "__main__":
    run()
