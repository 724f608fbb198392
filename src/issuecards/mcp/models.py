"""MCP models — JSON-RPC 2.0 envelopes and tool descriptors.

Implements the message format used by the Model Context Protocol: requests,
notifications, responses and the tool metadata returned by ``tools/list``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

JSONRPC_VERSION = "2.0"

RequestId = int | str

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request message (has ``id`` and ``method``)."""

    model_config = ConfigDict(frozen=True)

    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId
    method: str
    params: dict[str, Any] | list[Any] | None = None

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id, "method": self.method}
        if self.params is not None:
            wire["params"] = self.params
        return wire


class JsonRpcNotification(BaseModel):
    """A JSON-RPC 2.0 notification (``method`` without ``id``); never answered."""

    model_config = ConfigDict(frozen=True)

    jsonrpc: Literal["2.0"] = "2.0"
    method: str
    params: dict[str, Any] | list[Any] | None = None

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"jsonrpc": self.jsonrpc, "method": self.method}
        if self.params is not None:
            wire["params"] = self.params
        return wire


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    model_config = ConfigDict(frozen=True)

    code: int
    message: str
    data: Any = None

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            wire["data"] = self.data
        return wire


class JsonRpcResponse(BaseModel):
    """A successful JSON-RPC 2.0 response. ``result`` may legitimately be null."""

    model_config = ConfigDict(frozen=True)

    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId | None
    result: Any = None

    def to_wire(self) -> dict[str, Any]:
        return {"jsonrpc": self.jsonrpc, "id": self.id, "result": self.result}


class JsonRpcErrorResponse(BaseModel):
    """A failed JSON-RPC 2.0 response. Carries ``error`` and never ``result``."""

    model_config = ConfigDict(frozen=True)

    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId | None
    error: JsonRpcError

    def to_wire(self) -> dict[str, Any]:
        return {"jsonrpc": self.jsonrpc, "id": self.id, "error": self.error.to_wire()}


Envelope = JsonRpcRequest | JsonRpcNotification | JsonRpcResponse | JsonRpcErrorResponse

# ---------------------------------------------------------------------------
# Tool metadata
# ---------------------------------------------------------------------------


class ToolParameter(BaseModel):
    """One named parameter of a tool, in declaration order."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str = "string"
    description: str = ""
    required: bool = False


class ToolDescriptor(BaseModel):
    """Immutable description of a registered tool."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    description: str = "No description available"
    parameters: tuple[ToolParameter, ...] = ()

    def input_schema(self) -> dict[str, Any]:
        """Build the JSON Schema object advertised as ``inputSchema``."""
        return {
            "type": "object",
            "properties": {
                p.name: {"type": p.type or "string", "description": p.description}
                for p in self.parameters
            },
            "required": [p.name for p in self.parameters if p.required],
        }

    def to_listing(self) -> dict[str, Any]:
        """Shape used by ``tools/list``."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }

    def to_legacy_spec(self) -> dict[str, Any]:
        """Shape used by ``get_tool_specs`` (snake_case schema key)."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema(),
        }

    def to_summary(self) -> dict[str, Any]:
        """Shape advertised in ``server/info`` capabilities."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": [p.model_dump() for p in self.parameters],
        }


class ServerInfo(BaseModel):
    """Identity this server reports to its peer."""

    model_config = ConfigDict(frozen=True)

    name: str = "issue-cards-mcp"
    version: str = "0.0.0"
    description: str = "Issue Cards MCP Server"
