"""Test configuration and fixtures for the Target demo MCP servers."""

import pytest

from fastapi.testclient import TestClient

from mcp_target.cart_store import CartStore
from mcp_target.catalog import DemoCatalog
from mcp_target.config import Settings
from mcp_target.dispatcher import RequestDispatcher
from mcp_target.multiplexer import MultiServerApp
from mcp_target.registry import (
    LogicalServer,
    ResourceDescriptor,
    ResourceMap,
    Tool,
    ToolContext,
    ToolDescriptor,
    ToolRegistry,
)
from mcp_target.servers import build_server, default_mounts
from mcp_target.session_store import SessionStore

from test_utils import EchoArguments, NoArguments, crash, echo, refuse


ALL_SERVERS = ["auth", "search", "cart", "membership"]


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the developer's environment."""
    return Settings(
        host="127.0.0.1",
        port=3000,
        log_level="INFO",
        session_ttl=600,
        session_cleanup_interval=60,
        auto_auth_delay=0,
        sse_heartbeat_interval=30,
        base_url="http://testserver",
        product_search_url="",
        single_item_cart=True,
        servers=list(ALL_SERVERS),
    )


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore(session_ttl=600, cleanup_interval=60)


@pytest.fixture
def cart_store() -> CartStore:
    return CartStore(single_item=True)


@pytest.fixture
def tool_context(settings, session_store, cart_store) -> ToolContext:
    return ToolContext(
        sessions=session_store,
        carts=cart_store,
        catalog=DemoCatalog(),
        settings=settings,
        base_url=settings.base_url,
    )


@pytest.fixture
def echo_server() -> LogicalServer:
    """A small logical server exercising every dispatcher path."""
    return LogicalServer(
        name="echo-server",
        version="0.0.1",
        tools=ToolRegistry([
            Tool(ToolDescriptor(name="echo", description="Echo text", arguments=EchoArguments,
                                invoking="Echoing", invoked="Echoed"), echo),
            Tool(ToolDescriptor(name="refuse", description="Always refuses",
                                arguments=NoArguments), refuse),
            Tool(ToolDescriptor(name="crash", description="Always crashes",
                                arguments=NoArguments), crash),
        ]),
        resources=ResourceMap([
            ResourceDescriptor(uri="ui://widget/echo.html", name="Echo widget",
                               text="<div>echo</div>"),
        ]),
        instructions="Call echo.",
    )


@pytest.fixture
def echo_dispatcher(echo_server, tool_context) -> RequestDispatcher:
    return RequestDispatcher(echo_server, tool_context)


@pytest.fixture
def auth_dispatcher(tool_context) -> RequestDispatcher:
    return RequestDispatcher(build_server("auth"), tool_context)


@pytest.fixture
def cart_dispatcher(tool_context) -> RequestDispatcher:
    return RequestDispatcher(build_server("cart"), tool_context)


@pytest.fixture
def search_dispatcher(tool_context) -> RequestDispatcher:
    return RequestDispatcher(build_server("search"), tool_context)


@pytest.fixture
def membership_dispatcher(tool_context) -> RequestDispatcher:
    return RequestDispatcher(build_server("membership"), tool_context)


@pytest.fixture
def multiplexer(settings) -> MultiServerApp:
    return MultiServerApp(settings, default_mounts(settings.servers))


@pytest.fixture
def test_client(multiplexer) -> TestClient:
    return TestClient(multiplexer.get_app())
