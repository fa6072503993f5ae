"""Unified entry point supporting both HTTP (multiplexed) and STDIO transport.

HTTP mode hosts every selected tool server behind its own path prefix with
HTTP+SSE transport. STDIO mode serves one tool server to a local client.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import uvicorn
from fastapi import FastAPI

from .cart_store import CartStore
from .catalog import build_catalog
from .config import Settings
from .multiplexer import MultiServerApp
from .registry import ToolContext
from .servers import SERVER_BUILDERS, build_server, default_mounts
from .session_store import SessionStore
from .stdio_transport import StdioTransport


class UnifiedMCPServer:
    """Unified MCP server that supports both STDIO and HTTP transport modes."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.logger = logging.getLogger(__name__)
        self.multiplexer: Optional[MultiServerApp] = None

    def build_app(self) -> FastAPI:
        """Build the multiplexed FastAPI application for the configured servers."""
        self.multiplexer = MultiServerApp(self.settings, default_mounts(self.settings.servers))
        return self.multiplexer.get_app()

    def run_http(self):
        """Run every configured server over HTTP+SSE."""
        app = self.build_app()
        self.logger.info(f"Starting MCP servers in HTTP mode on {self.settings.host}:{self.settings.port}")
        for server in self.multiplexer.describe_servers():
            self.logger.info(f"  {server['name']}: {server['stream']}")

        uvicorn.run(
            app,
            host=self.settings.host,
            port=self.settings.port,
            log_level=self.settings.log_level.lower(),
        )

    def run_stdio(self, server_name: str):
        """Run a single server over STDIO."""
        self.logger.info(f"Starting {server_name} server in STDIO mode")
        context = ToolContext(
            sessions=SessionStore(
                session_ttl=self.settings.session_ttl,
                cleanup_interval=self.settings.session_cleanup_interval,
            ),
            carts=CartStore(single_item=self.settings.single_item_cart),
            catalog=build_catalog(self.settings.product_search_url),
            settings=self.settings,
            base_url=self.settings.base_url,
        )
        asyncio.run(StdioTransport(build_server(server_name), context).serve())


def create_app() -> FastAPI:
    """App factory for ``uvicorn mcp_target.unified_server:create_app --factory``."""
    return UnifiedMCPServer().build_app()


def _server_list(value: str) -> List[str]:
    names = [name.strip() for name in value.split(",") if name.strip()]
    unknown = [name for name in names if name not in SERVER_BUILDERS]
    if not names or unknown:
        raise argparse.ArgumentTypeError(
            f"expected a comma separated subset of {', '.join(SERVER_BUILDERS)}"
        )
    return names


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    defaults = Settings()
    parser = argparse.ArgumentParser(description="Target Demo MCP Servers")
    parser.add_argument(
        "--transport",
        choices=["http", "stdio"],
        default="http",
        help="Transport mode (default: http)"
    )
    parser.add_argument(
        "--host",
        default=defaults.host,
        help=f"Host to bind to for HTTP mode (default: {defaults.host})"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=defaults.port,
        help=f"Port to bind to for HTTP mode (default: {defaults.port})"
    )
    parser.add_argument(
        "--session-timeout",
        type=float,
        default=defaults.session_ttl,
        help=f"Authentication session TTL in seconds (default: {defaults.session_ttl:g})"
    )
    parser.add_argument(
        "--servers",
        type=_server_list,
        default=defaults.servers,
        help="Comma separated servers to host in HTTP mode (default: all)"
    )
    parser.add_argument(
        "--server",
        choices=sorted(SERVER_BUILDERS),
        default="auth",
        help="Server to run in STDIO mode (default: auth)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=defaults.log_level if defaults.log_level in
        ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL") else "INFO",
        help="Logging level (default: INFO)"
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """Main entry point with command-line argument support."""
    args = parse_args(argv)

    # Logs go to stderr so they never mix with stdio protocol output
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    settings = Settings(
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        session_ttl=args.session_timeout,
        servers=args.servers,
    )
    server = UnifiedMCPServer(settings)

    try:
        if args.transport == "stdio":
            server.run_stdio(args.server)
        else:
            server.run_http()
    except KeyboardInterrupt:
        logging.info("Server stopped by user")
    except Exception as e:
        logging.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
