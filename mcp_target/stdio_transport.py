"""STDIO transport: newline-delimited JSON-RPC on stdin/stdout.

Serves a single logical server to a local client process. One dispatcher
lives for the whole process, so the process is the connection.
"""

import asyncio
import json
import logging
import sys
from typing import Optional, TextIO

from .dispatcher import RequestDispatcher
from .errors import ParseError
from .registry import LogicalServer, ToolContext

logger = logging.getLogger(__name__)


class StdioTransport:
    """Reads requests line by line and writes one response line per request."""

    def __init__(self, server: LogicalServer, context: ToolContext,
                 reader: Optional[TextIO] = None, writer: Optional[TextIO] = None):
        self.dispatcher = RequestDispatcher(server, context)
        self.reader = reader or sys.stdin
        self.writer = writer or sys.stdout

    def _write(self, message) -> None:
        self.writer.write(json.dumps(message) + "\n")
        self.writer.flush()

    async def handle_line(self, line: str) -> None:
        line = line.strip()
        if not line:
            return

        try:
            payload = json.loads(line)
        except json.JSONDecodeError as e:
            self._write(ParseError(f"Parse error: {e}").to_response(None))
            return

        response = await self.dispatcher.handle_payload(payload)
        if response is not None:
            self._write(response)

    async def serve(self) -> None:
        """Process lines until stdin is closed."""
        logger.info(f"Serving {self.dispatcher.server.name} over stdio")
        while True:
            line = await asyncio.to_thread(self.reader.readline)
            if not line:
                break
            await self.handle_line(line)
        logger.info("stdin closed, stopping stdio transport")
