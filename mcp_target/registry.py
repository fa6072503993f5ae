"""Declarative tool and resource registries for logical MCP servers.

A logical server is built from data: an ordered list of tools (descriptor +
handler) and a list of resources. The dispatcher and transports never know
which concrete server they are serving.
"""

import json
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterable, List, Optional, Type, Union
)

from pydantic import BaseModel

from .cart_store import CartStore
from .config import Settings
from .session_store import SessionStore

if TYPE_CHECKING:
    from .catalog import ProductCatalog


@dataclass
class ToolContext:
    """Everything a tool handler may touch besides its arguments."""

    sessions: SessionStore
    carts: CartStore
    catalog: "ProductCatalog"
    settings: Settings
    base_url: str = ""
    transport_session_id: Optional[str] = None


@dataclass
class ToolResult:
    """Outcome of a tool call, rendered as an MCP ``CallToolResult``."""

    structured: Dict[str, Any]
    text: Optional[str] = None
    is_error: bool = False
    meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, message: str) -> "ToolResult":
        return cls(structured={"error": message}, text=message, is_error=True)

    def to_dict(self) -> Dict[str, Any]:
        text = self.text
        if text is None:
            text = json.dumps(self.structured, indent=2)
        result: Dict[str, Any] = {
            "content": [{"type": "text", "text": text}],
            "structuredContent": self.structured,
            "isError": self.is_error,
        }
        if self.meta:
            result["_meta"] = self.meta
        return result


Handler = Callable[[Any, ToolContext], Awaitable[Union[ToolResult, Dict[str, Any]]]]


@dataclass(frozen=True)
class ToolDescriptor:
    """Immutable declaration of a tool and its argument contract.

    ``arguments`` is a pydantic model; its JSON schema is the tool's
    ``inputSchema`` and it validates incoming arguments before the handler
    runs. ``invoking``/``invoked`` are status strings a client may show
    while the tool executes, and ``widget_uri`` names the resource used to
    render the result.
    """

    name: str
    description: str
    arguments: Type[BaseModel]
    title: Optional[str] = None
    invoking: Optional[str] = None
    invoked: Optional[str] = None
    widget_uri: Optional[str] = None

    def input_schema(self) -> Dict[str, Any]:
        schema = self.arguments.model_json_schema(by_alias=True)
        schema.pop("title", None)
        schema.setdefault("type", "object")
        schema.setdefault("properties", {})
        return schema

    def invocation_meta(self) -> Dict[str, Any]:
        meta: Dict[str, Any] = {}
        if self.widget_uri:
            meta["openai/outputTemplate"] = self.widget_uri
        if self.invoking:
            meta["openai/toolInvocation/invoking"] = self.invoking
        if self.invoked:
            meta["openai/toolInvocation/invoked"] = self.invoked
        return meta

    def to_dict(self) -> Dict[str, Any]:
        tool: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }
        if self.title:
            tool["title"] = self.title
        meta = self.invocation_meta()
        if meta:
            tool["_meta"] = meta
        return tool


@dataclass(frozen=True)
class Tool:
    descriptor: ToolDescriptor
    handler: Handler

    @property
    def name(self) -> str:
        return self.descriptor.name


class ToolRegistry:
    """Ordered, read-only collection of tools for one logical server."""

    def __init__(self, tools: Iterable[Tool]):
        self._tools: Dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self._tools[tool.name] = tool

    def list(self) -> List[ToolDescriptor]:
        """Return descriptors in declaration order."""
        return [tool.descriptor for tool in self._tools.values()]

    def describe(self, name: str) -> Optional[ToolDescriptor]:
        tool = self._tools.get(name)
        return tool.descriptor if tool else None

    def resolve(self, name: str) -> Optional[Handler]:
        tool = self._tools.get(name)
        return tool.handler if tool else None

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


@dataclass(frozen=True)
class ResourceDescriptor:
    """A fetchable document (UI markup) addressed by URI."""

    uri: str
    name: str
    text: str
    description: str = ""
    mime_type: str = "text/html+skybridge"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uri": self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
        }

    def contents(self) -> Dict[str, Any]:
        return {"uri": self.uri, "mimeType": self.mime_type, "text": self.text}


class ResourceMap:
    """Resources of one logical server, keyed by URI."""

    def __init__(self, resources: Iterable[ResourceDescriptor] = ()):
        self._resources: Dict[str, ResourceDescriptor] = {}
        for resource in resources:
            if resource.uri in self._resources:
                raise ValueError(f"Duplicate resource uri: {resource.uri}")
            self._resources[resource.uri] = resource

    def list(self) -> List[ResourceDescriptor]:
        return list(self._resources.values())

    def read(self, uri: str) -> Optional[ResourceDescriptor]:
        return self._resources.get(uri)

    def __len__(self) -> int:
        return len(self._resources)


@dataclass(frozen=True)
class LogicalServer:
    """One MCP server: identity, tools and resources."""

    name: str
    version: str
    tools: ToolRegistry
    resources: ResourceMap = field(default_factory=ResourceMap)
    instructions: Optional[str] = None
