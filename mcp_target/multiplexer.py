"""Multiplexer hosting several logical MCP servers on one FastAPI app.

Each mounted server gets its own transport manager and connection table.
The session store, cart store and product catalog are shared by all of
them so a customer signed in through one server is known to the others.
"""

import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple

from fastapi import FastAPI, Request
from starlette.middleware.cors import CORSMiddleware

from . import __version__
from .cart_store import CartStore
from .catalog import ProductCatalog, build_catalog
from .config import Settings
from .http_transport import TransportManager
from .registry import LogicalServer, ToolContext
from .rest_api import build_router
from .session_store import SessionStore


class MultiServerApp:
    """FastAPI application serving N logical servers under distinct prefixes."""

    def __init__(self, settings: Settings, servers: Sequence[Tuple[str, LogicalServer]],
                 sessions: Optional[SessionStore] = None,
                 carts: Optional[CartStore] = None,
                 catalog: Optional[ProductCatalog] = None):
        """Initialize the multiplexer.

        Args:
            settings: Runtime settings
            servers: ``(prefix, server)`` pairs; prefixes must be unique
            sessions: Shared session store (created from settings if omitted)
            carts: Shared cart store (created from settings if omitted)
            catalog: Product data source (built from settings if omitted)
        """
        self.settings = settings
        self.logger = logging.getLogger(__name__)
        self.started_at = time.time()
        self.sessions = sessions or SessionStore(
            session_ttl=settings.session_ttl,
            cleanup_interval=settings.session_cleanup_interval,
        )
        self.carts = carts or CartStore(single_item=settings.single_item_cart)
        self.catalog = catalog or build_catalog(settings.product_search_url)
        self.managers: Dict[str, TransportManager] = {}

        self.app = FastAPI(title="Target Demo MCP Servers", version=__version__)
        # Also answers the CORS preflight of every mounted prefix
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],  # demo server, no origin restrictions
            allow_credentials=False,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=["Mcp-Session-Id"],
            max_age=600,
        )

        for prefix, server in servers:
            self.mount(prefix, server)

        self.app.include_router(build_router(self.sessions))
        self._setup_routes()

    def context_factory(self, transport_session_id: Optional[str], base_url: str) -> ToolContext:
        return ToolContext(
            sessions=self.sessions,
            carts=self.carts,
            catalog=self.catalog,
            settings=self.settings,
            base_url=base_url,
            transport_session_id=transport_session_id,
        )

    def mount(self, prefix: str, server: LogicalServer) -> TransportManager:
        """Register a logical server and its routes under ``prefix``."""
        prefix = "/" + prefix.strip("/")
        if prefix in self.managers:
            raise ValueError(f"Prefix {prefix} is already mounted")

        manager = TransportManager(
            server,
            self.context_factory,
            prefix=prefix,
            heartbeat_interval=self.settings.sse_heartbeat_interval,
            base_url=self.settings.base_url,
        )
        self.managers[prefix] = manager

        self.app.add_api_route(prefix, manager.handle_stream_request,
                               methods=["GET"], include_in_schema=False)
        self.app.add_api_route(prefix, manager.handle_direct_request,
                               methods=["POST"], include_in_schema=False)
        self.app.add_api_route(manager.messages_path, manager.handle_message_request,
                               methods=["POST"], include_in_schema=False)

        self.logger.info(f"Mounted {server.name} at {prefix} ({len(server.tools)} tools)")
        return manager

    def _setup_routes(self) -> None:

        @self.app.get("/")
        async def index(request: Request):
            base_url = self.settings.base_url or str(request.base_url).rstrip("/")
            return {
                "name": "Target Demo MCP Servers",
                "version": __version__,
                "servers": self.describe_servers(base_url),
                "endpoints": {
                    "health": f"{base_url}/health",
                    "auth_component": f"{base_url}/components/auth.html",
                },
            }

        @self.app.get("/health")
        async def health_check():
            return {
                "status": "healthy",
                "timestamp": time.time(),
                "uptime": time.time() - self.started_at,
                "sessions": self.sessions.count(),
                "connections": {
                    prefix: manager.connection_count()
                    for prefix, manager in self.managers.items()
                },
            }

    def describe_servers(self, base_url: str = "") -> List[Dict[str, str]]:
        return [
            {
                "name": manager.server.name,
                "version": manager.server.version,
                "stream": f"{base_url}{prefix}",
                "messages": f"{base_url}{manager.messages_path}",
            }
            for prefix, manager in self.managers.items()
        ]

    def get_app(self) -> FastAPI:
        """Get the FastAPI application."""
        return self.app
