"""Error taxonomy and JSON-RPC error envelopes.

Protocol errors are answered with a JSON-RPC ``error`` object and leave the
connection open. Tool errors are raised by handlers and surfaced to the
agent as a failed tool result. Transport errors end a single connection.
"""

from typing import Any, Dict, Optional

JSONRPC_VERSION = "2.0"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


def error_response(request_id: Any, code: int, message: str,
                   data: Optional[Any] = None) -> Dict[str, Any]:
    """Build a JSON-RPC error envelope.

    Args:
        request_id: Id of the request being answered (``None`` if unreadable)
        code: JSON-RPC error code
        message: Human readable message
        data: Optional extra error data

    Returns:
        JSON-RPC error response dictionary
    """
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


def success_response(request_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    """Build a JSON-RPC success envelope."""
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


class ProtocolError(Exception):
    """Base class for errors answered with a JSON-RPC error envelope."""

    code = INTERNAL_ERROR

    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.data = data

    def to_response(self, request_id: Any) -> Dict[str, Any]:
        return error_response(request_id, self.code, self.message, self.data)


class ParseError(ProtocolError):
    code = PARSE_ERROR


class InvalidRequestError(ProtocolError):
    code = INVALID_REQUEST


class MethodNotFoundError(ProtocolError):
    code = METHOD_NOT_FOUND


class InvalidParamsError(ProtocolError):
    code = INVALID_PARAMS


class InternalError(ProtocolError):
    code = INTERNAL_ERROR


class ToolError(Exception):
    """Raised by a tool handler when a precondition is not met.

    The message is shown to the end user as-is, so it should say what to
    do next (for example which tool to call first).
    """


class UpstreamError(ToolError):
    """Raised when an external data source fails or returns garbage."""


class TransportError(Exception):
    """Raised when a streaming connection cannot be established or written."""
