"""MCP protocol — JSON-RPC 2.0 server over stdio."""

from issuecards.mcp.errors import (
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    ParseError,
    ProtocolError,
    ToolNotFoundError,
)
from issuecards.mcp.models import (
    JsonRpcError,
    JsonRpcErrorResponse,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    ToolDescriptor,
    ToolParameter,
)
from issuecards.mcp.registry import ToolRegistry
from issuecards.mcp.transport import StdioTransport

__all__ = [
    "InternalError",
    "InvalidParamsError",
    "InvalidRequestError",
    "JsonRpcError",
    "JsonRpcErrorResponse",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "MethodNotFoundError",
    "ParseError",
    "ProtocolError",
    "StdioTransport",
    "ToolDescriptor",
    "ToolNotFoundError",
    "ToolParameter",
    "ToolRegistry",
]
