"""Application configuration.

Loads environment variables (from a .env file or the system environment)
and exposes them as module constants plus a ``Settings`` object that the
server, transports and tool handlers receive.
"""

import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Sessions older than this are removed by the opportunistic sweep (10 minutes).
SESSION_TTL = float(os.getenv("SESSION_TTL_SECONDS", "600"))
SESSION_CLEANUP_INTERVAL = float(os.getenv("SESSION_CLEANUP_INTERVAL_SECONDS", "60"))

# 0 disables the simulated "login completed elsewhere" timer.
AUTO_AUTH_DELAY = float(os.getenv("AUTO_AUTH_DELAY_SECONDS", "0"))

SSE_HEARTBEAT_INTERVAL = float(os.getenv("SSE_HEARTBEAT_SECONDS", "30"))

# Public URL used to build component links; derived from the request when empty.
BASE_URL = os.getenv("BASE_URL", "").rstrip("/")

# Empty means the bundled demo catalog is used instead of an HTTP upstream.
PRODUCT_SEARCH_URL = os.getenv("PRODUCT_SEARCH_URL", "").strip()

SINGLE_ITEM_CART = _env_bool("SINGLE_ITEM_CART", True)

MCP_SERVERS = _env_list("MCP_SERVERS", "auth,search,cart,membership")


@dataclass
class Settings:
    """Runtime settings shared by the transports and tool handlers."""

    host: str = HOST
    port: int = PORT
    log_level: str = LOG_LEVEL
    session_ttl: float = SESSION_TTL
    session_cleanup_interval: float = SESSION_CLEANUP_INTERVAL
    auto_auth_delay: float = AUTO_AUTH_DELAY
    sse_heartbeat_interval: float = SSE_HEARTBEAT_INTERVAL
    base_url: str = BASE_URL
    product_search_url: str = PRODUCT_SEARCH_URL
    single_item_cart: bool = SINGLE_ITEM_CART
    servers: List[str] = field(default_factory=lambda: list(MCP_SERVERS))
