"""JSON-RPC request dispatcher for a logical MCP server.

One dispatcher is created per connection. It validates the envelope, routes
the method to the server's tool registry or resource map, and always turns
the outcome into exactly one JSON-RPC response (or none for notifications).
Handler exceptions never escape ``handle_message``.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from .errors import (
    JSONRPC_VERSION,
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    ProtocolError,
    ToolError,
    error_response,
    success_response,
)
from .registry import LogicalServer, ToolContext, ToolResult

PROTOCOL_VERSION = "2024-11-05"

Message = Dict[str, Any]


def summarize_validation_error(exc: ValidationError) -> str:
    """Render a pydantic validation error as one readable line."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(loc) for loc in error.get("loc", ())) or "arguments"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


class RequestDispatcher:
    """Routes parsed JSON-RPC messages to one logical server's handlers."""

    def __init__(self, server: LogicalServer, context: ToolContext):
        self.server = server
        self.context = context
        self.client_info: Dict[str, Any] = {}
        self.logger = logging.getLogger(__name__)

        self._methods = {
            "initialize": self._handle_initialize,
            "ping": self._handle_ping,
            "tools/list": self._handle_tools_list,
            "tools/call": self._handle_tools_call,
            "resources/list": self._handle_resources_list,
            "resources/read": self._handle_resources_read,
        }

    async def handle_payload(self, payload: Any) -> Optional[Union[Message, List[Message]]]:
        """Handle a single message or a JSON-RPC batch.

        Returns:
            A response, a list of responses for a batch, or None when
            nothing needs to be sent back
        """
        if isinstance(payload, list):
            if not payload:
                return error_response(None, InvalidRequestError.code,
                                      "Invalid Request: empty batch")
            responses = []
            for message in payload:
                response = await self.handle_message(message)
                if response is not None:
                    responses.append(response)
            return responses or None
        return await self.handle_message(payload)

    async def handle_message(self, message: Any) -> Optional[Message]:
        """Handle one JSON-RPC message.

        Returns:
            The response envelope, or None for notifications
        """
        request_id = message.get("id") if isinstance(message, dict) else None

        try:
            method, params, request_id, is_notification = self._parse(message)

            if is_notification:
                self._handle_notification(method, params)
                return None

            handler = self._methods.get(method)
            if handler is None:
                raise MethodNotFoundError(f"Method not found: {method}")

            self.logger.info(f"[{self.server.name}] {method} (id={request_id})")
            result = await handler(params)
            return success_response(request_id, result)

        except ProtocolError as e:
            self.logger.warning(f"[{self.server.name}] protocol error: {e.message}")
            return e.to_response(request_id)
        except Exception as e:
            self.logger.exception(f"[{self.server.name}] unexpected dispatcher failure")
            return InternalError(f"Internal error: {e}").to_response(request_id)

    def _parse(self, message: Any) -> Tuple[str, Dict[str, Any], Any, bool]:
        """Validate the envelope and split it into its parts."""
        if not isinstance(message, dict):
            raise InvalidRequestError("Invalid Request: must be a JSON object")

        if message.get("jsonrpc") != JSONRPC_VERSION:
            raise InvalidRequestError("Invalid Request: jsonrpc must be '2.0'")

        method = message.get("method")
        if not method or not isinstance(method, str):
            raise InvalidRequestError("Invalid Request: method is required and must be a string")

        is_notification = "id" not in message
        if is_notification and not method.startswith("notifications/"):
            raise InvalidRequestError(
                "Invalid Request: id is required for non-notification requests"
            )

        params = message.get("params")
        if params is None:
            params = {}
        elif isinstance(params, list):
            # Positional params carry nothing for these methods
            params = {}
        elif not isinstance(params, dict):
            raise InvalidRequestError("Invalid Request: params must be an object or array")

        return method, params, message.get("id"), is_notification

    def _handle_notification(self, method: str, params: Dict[str, Any]) -> None:
        self.logger.debug(f"[{self.server.name}] notification {method}")

    async def _handle_initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        client_info = params.get("clientInfo") or {}
        if isinstance(client_info, dict):
            self.client_info = client_info

        self.logger.info(
            f"[{self.server.name}] initialized by client: {self.client_info.get('name', 'unknown')}"
        )

        capabilities: Dict[str, Any] = {"tools": {"listChanged": False}}
        if len(self.server.resources):
            capabilities["resources"] = {"subscribe": False, "listChanged": False}

        result: Dict[str, Any] = {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": capabilities,
            "serverInfo": {"name": self.server.name, "version": self.server.version},
        }
        if self.server.instructions:
            result["instructions"] = self.server.instructions
        return result

    async def _handle_ping(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def _handle_tools_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"tools": [descriptor.to_dict() for descriptor in self.server.tools.list()]}

    async def _handle_tools_call(self, params: Dict[str, Any]) -> Dict[str, Any]:
        tool_name = params.get("name")
        if not tool_name or not isinstance(tool_name, str):
            raise InvalidParamsError("Tool name is required")

        descriptor = self.server.tools.describe(tool_name)
        handler = self.server.tools.resolve(tool_name)
        if descriptor is None or handler is None:
            raise MethodNotFoundError(f"Tool not found: {tool_name}")

        raw_arguments = params.get("arguments")
        if raw_arguments is None:
            raw_arguments = {}
        if not isinstance(raw_arguments, dict):
            raise InvalidParamsError(f"Arguments for {tool_name} must be an object")

        try:
            arguments = descriptor.arguments.model_validate(raw_arguments)
        except ValidationError as e:
            raise InvalidParamsError(
                f"Invalid arguments for {tool_name}: {summarize_validation_error(e)}"
            )

        try:
            outcome = await handler(arguments, self.context)
        except ToolError as e:
            self.logger.info(f"[{self.server.name}] tool {tool_name} refused: {e}")
            return ToolResult.failure(str(e)).to_dict()
        except Exception as e:
            self.logger.error(f"[{self.server.name}] tool {tool_name} failed: {e}")
            return ToolResult.failure(str(e) or type(e).__name__).to_dict()

        if isinstance(outcome, dict):
            outcome = ToolResult(structured=outcome)

        meta = descriptor.invocation_meta()
        if meta:
            outcome.meta = {**meta, **outcome.meta}
        return outcome.to_dict()

    async def _handle_resources_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"resources": [resource.to_dict() for resource in self.server.resources.list()]}

    async def _handle_resources_read(self, params: Dict[str, Any]) -> Dict[str, Any]:
        uri = params.get("uri")
        if not uri or not isinstance(uri, str):
            raise InvalidParamsError("Resource uri is required")

        resource = self.server.resources.read(uri)
        if resource is None:
            raise InvalidParamsError(f"Resource not found: {uri}")

        return {"contents": [resource.contents()]}
