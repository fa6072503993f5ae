"""HTTP+SSE transport for one logical MCP server.

A client opens ``GET <prefix>`` with ``Accept: text/event-stream``. The server
allocates a transport session id, binds it to a fresh dispatcher, and sends an
``endpoint`` event naming ``<prefix>/messages?sessionId=<id>``. Messages POSTed
there are dispatched in arrival order and their responses are pushed back over
the original stream; the POST itself only returns ``202 Accepted``.

``POST <prefix>`` is also accepted as a stateless request/response exchange.
"""

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from fastapi import Request, Response
from fastapi.responses import StreamingResponse
from starlette.responses import JSONResponse

from .dispatcher import RequestDispatcher
from .errors import InternalError, InvalidRequestError, ParseError, TransportError
from .registry import LogicalServer, ToolContext

ContextFactory = Callable[[Optional[str], str], ToolContext]

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse_event(event: str, data: str) -> str:
    """Format one Server-Sent Events frame."""
    lines = "".join(f"data: {line}\n" for line in data.splitlines() or [""])
    return f"event: {event}\n{lines}\n"


@dataclass
class ConnectionBinding:
    """A live streaming connection and the dispatcher bound to it."""

    transport_session_id: str
    dispatcher: RequestDispatcher
    queue: "asyncio.Queue[Any]" = field(default_factory=asyncio.Queue)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    created_at: float = field(default_factory=time.time)
    closed: bool = False


class UnknownSessionError(KeyError):
    """Raised when a message references a transport session that is not live."""


class TransportManager:
    """Connection table and HTTP handlers for one logical server."""

    def __init__(self, server: LogicalServer, context_factory: ContextFactory,
                 prefix: str = "/mcp", heartbeat_interval: float = 30.0,
                 base_url: str = ""):
        """Initialize transport manager.

        Args:
            server: Logical server whose tools are exposed
            context_factory: Builds the tool context for a new dispatcher
            prefix: URL path prefix of this server
            heartbeat_interval: Seconds between keepalive comments on idle streams
            base_url: Public base URL; derived from each request when empty
        """
        self.server = server
        self.context_factory = context_factory
        self.prefix = prefix.rstrip("/") or "/mcp"
        self.heartbeat_interval = heartbeat_interval
        self.base_url = base_url.rstrip("/")
        self.connections: Dict[str, ConnectionBinding] = {}
        self.logger = logging.getLogger(__name__)

    @property
    def messages_path(self) -> str:
        return f"{self.prefix}/messages"

    def generate_transport_session_id(self) -> str:
        return uuid.uuid4().hex

    def create_dispatcher(self, transport_session_id: Optional[str],
                          base_url: str = "") -> RequestDispatcher:
        return RequestDispatcher(self.server, self.context_factory(transport_session_id, base_url))

    def create_binding(self, base_url: str = "") -> ConnectionBinding:
        """Allocate a transport session id and its dispatcher.

        The binding is not live until ``register`` puts it in the table.
        """
        transport_session_id = self.generate_transport_session_id()
        dispatcher = self.create_dispatcher(transport_session_id, base_url)
        return ConnectionBinding(transport_session_id=transport_session_id,
                                 dispatcher=dispatcher)

    def register(self, binding: ConnectionBinding) -> None:
        """Make a binding reachable by ``POST <prefix>/messages``.

        Raises:
            TransportError: If the binding was already closed
        """
        if binding.closed:
            raise TransportError(
                f"connection {binding.transport_session_id[:8]}... is already closed"
            )
        if self.connections.get(binding.transport_session_id) is binding:
            return
        self.connections[binding.transport_session_id] = binding
        self.logger.info(f"[{self.prefix}] opened connection {binding.transport_session_id[:8]}... "
                         f"({len(self.connections)} live)")

    def get_connection(self, transport_session_id: Optional[str]) -> Optional[ConnectionBinding]:
        if not transport_session_id:
            return None
        return self.connections.get(transport_session_id)

    def close_connection(self, transport_session_id: str) -> bool:
        """Forget a connection.

        Only removes the table entry. The stream that owns the binding is
        what calls this, so nothing here may close the stream again.
        """
        binding = self.connections.pop(transport_session_id, None)
        if binding is None:
            return False
        binding.closed = True
        self.logger.info(f"[{self.prefix}] closed connection {transport_session_id[:8]}... "
                         f"({len(self.connections)} live)")
        return True

    async def submit(self, transport_session_id: str, payload: Any) -> bool:
        """Dispatch a client message and queue its response on the stream.

        Returns:
            True if a response was queued, False if none was produced or the
            connection closed while the message was being handled

        Raises:
            UnknownSessionError: If no live connection has this id
        """
        binding = self.get_connection(transport_session_id)
        if binding is None:
            raise UnknownSessionError(transport_session_id)

        async with binding.lock:
            response = await binding.dispatcher.handle_payload(payload)
            if response is None:
                return False
            if binding.closed:
                self.logger.debug(f"[{self.prefix}] dropping response for closed "
                                  f"connection {transport_session_id[:8]}...")
                return False
            await binding.queue.put(response)
            return True

    async def event_stream(self, binding: ConnectionBinding,
                           request: Optional[Request] = None):
        """Generate SSE frames for one connection until it goes away.

        The binding is registered when the body starts streaming and removed
        when the generator finishes, so a response whose body never starts
        leaves nothing in the table.
        """
        transport_session_id = binding.transport_session_id

        try:
            self.register(binding)
            yield format_sse_event("endpoint", f"{self.messages_path}?sessionId={transport_session_id}")

            while not binding.closed:
                try:
                    message = await asyncio.wait_for(binding.queue.get(),
                                                     timeout=self.heartbeat_interval)
                except asyncio.TimeoutError:
                    if request is not None and await request.is_disconnected():
                        break
                    yield ": ping\n\n"
                    continue

                yield format_sse_event("message", json.dumps(message))

        except asyncio.CancelledError:
            self.logger.debug(f"[{self.prefix}] stream {transport_session_id[:8]}... cancelled")
            raise
        except TransportError as e:
            self.logger.warning(f"[{self.prefix}] {e}")
        except Exception as e:
            self.logger.error(f"[{self.prefix}] stream {transport_session_id[:8]}... failed: {e}")
        finally:
            self.close_connection(transport_session_id)

    def _base_url(self, request: Request) -> str:
        if self.base_url:
            return self.base_url
        proto = request.headers.get("x-forwarded-proto", request.url.scheme)
        host = request.headers.get("x-forwarded-host") or request.headers.get("host") or request.url.netloc
        return f"{proto}://{host}"

    async def handle_stream_request(self, request: Request) -> Response:
        """Handle ``GET <prefix>``: open an SSE stream."""
        accept_header = request.headers.get("Accept", "")
        if "text/event-stream" not in accept_header:
            return JSONResponse(
                status_code=405,
                content=InvalidRequestError(
                    "Method not allowed. Use Accept: text/event-stream to open a stream "
                    f"or POST to {self.prefix}."
                ).to_response(None),
            )

        try:
            binding = self.create_binding(self._base_url(request))
        except Exception as e:
            self.logger.error(f"[{self.prefix}] failed to establish SSE connection: {e}")
            return JSONResponse(status_code=500,
                                content={"error": "Failed to establish SSE connection"})

        return StreamingResponse(
            self.event_stream(binding, request),
            media_type="text/event-stream",
            headers={**SSE_HEADERS, "Mcp-Session-Id": binding.transport_session_id},
        )

    async def _read_json(self, request: Request) -> Any:
        body = await request.body()
        if not body:
            raise ValueError("Empty request body")
        return json.loads(body)

    async def handle_message_request(self, request: Request) -> Response:
        """Handle ``POST <prefix>/messages?sessionId=<id>``."""
        transport_session_id = request.query_params.get("sessionId")
        if not transport_session_id:
            return JSONResponse(status_code=400, content={"error": "Missing sessionId query parameter"})

        if self.get_connection(transport_session_id) is None:
            self.logger.warning(f"[{self.prefix}] message for unknown session "
                                f"{transport_session_id[:8]}...")
            return JSONResponse(status_code=404, content={"error": "Unknown session"})

        try:
            payload = await self._read_json(request)
        except ValueError as e:
            return JSONResponse(status_code=400,
                                content=ParseError(f"Parse error: {e}").to_response(None))

        try:
            await self.submit(transport_session_id, payload)
        except UnknownSessionError:
            return JSONResponse(status_code=404, content={"error": "Unknown session"})

        return JSONResponse(status_code=202, content={"ok": True})

    async def handle_direct_request(self, request: Request) -> Response:
        """Handle ``POST <prefix>``: answer in the HTTP response body."""
        try:
            payload = await self._read_json(request)
        except ValueError as e:
            return JSONResponse(status_code=400,
                                content=ParseError(f"Parse error: {e}").to_response(None))

        try:
            dispatcher = self.create_dispatcher(None, self._base_url(request))
            response = await dispatcher.handle_payload(payload)
        except Exception as e:
            self.logger.error(f"[{self.prefix}] error handling MCP request: {e}")
            return JSONResponse(status_code=500,
                                content=InternalError("Internal server error").to_response(None))

        if response is None:
            return Response(status_code=202)
        return JSONResponse(content=response)

    def connection_count(self) -> int:
        return len(self.connections)
