"""Logical tool servers hosted by the multiplexer."""

from typing import Callable, Dict, List, Tuple

from ..registry import LogicalServer
from . import auth, cart, membership, search

SERVER_BUILDERS: Dict[str, Callable[[], LogicalServer]] = {
    "auth": auth.build_server,
    "search": search.build_server,
    "cart": cart.build_server,
    "membership": membership.build_server,
}


def build_server(name: str) -> LogicalServer:
    try:
        return SERVER_BUILDERS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown server {name!r}; expected one of {', '.join(SERVER_BUILDERS)}"
        )


def default_mounts(names: List[str]) -> List[Tuple[str, LogicalServer]]:
    """Assign path prefixes: ``/mcp`` for a single server, ``/mcp1``.. otherwise."""
    if len(names) == 1:
        return [("/mcp", build_server(names[0]))]
    return [(f"/mcp{index}", build_server(name)) for index, name in enumerate(names, start=1)]
