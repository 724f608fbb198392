"""Error types for the MCP protocol layer.

Each :class:`ProtocolError` subclass maps onto one standard JSON-RPC 2.0 error
code so that any failure can be reported to the peer as a well-formed error
response.
"""

from __future__ import annotations

from typing import Any

from issuecards.mcp.models import JsonRpcError, RequestId

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class ProtocolError(Exception):
    """Base error for all protocol-layer failures."""

    code: int = INTERNAL_ERROR
    title: str = "Internal error"

    def __init__(
        self,
        data: Any = None,
        *,
        request_id: RequestId | None = None,
        answerable: bool | None = None,
    ) -> None:
        self.data = data
        self.request_id = request_id
        # Whether the peer expects a reply (the offending message carried an id).
        self.answerable = request_id is not None if answerable is None else answerable
        super().__init__(self.title + (f": {_describe(data)}" if data is not None else ""))

    @property
    def message(self) -> str:
        return self.title

    def to_error(self) -> JsonRpcError:
        """Return the wire-level error object."""
        return JsonRpcError(code=self.code, message=self.title, data=self.data)


class ParseError(ProtocolError):
    """The input line is not valid JSON."""

    code = PARSE_ERROR
    title = "Parse error"


class InvalidRequestError(ProtocolError):
    """The message is JSON but not a valid JSON-RPC 2.0 envelope."""

    code = INVALID_REQUEST
    title = "Invalid Request"


class MethodNotFoundError(ProtocolError):
    """The requested method is not recognised."""

    code = METHOD_NOT_FOUND
    title = "Method not found"

    def __init__(self, method: str, *, request_id: RequestId | None = None) -> None:
        self.method = method
        super().__init__({"method": method}, request_id=request_id)


class InvalidParamsError(ProtocolError):
    """Request parameters are missing or malformed."""

    code = INVALID_PARAMS
    title = "Invalid params"

    def __init__(self, details: str, *, request_id: RequestId | None = None) -> None:
        self.details = details
        super().__init__({"details": details}, request_id=request_id)


class ToolNotFoundError(InvalidParamsError):
    """Requested tool does not exist in the registry."""

    def __init__(self, name: str, *, request_id: RequestId | None = None) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}", request_id=request_id)


class InternalError(ProtocolError):
    """An unexpected failure while handling a request."""

    code = INTERNAL_ERROR
    title = "Internal error"


class ToolRegistrationError(Exception):
    """A tool could not be added to the registry."""


class RemoteError(Exception):
    """The peer answered one of our outbound requests with an error."""

    def __init__(self, error: JsonRpcError) -> None:
        self.error = error
        super().__init__(error.message)


class RequestTimeoutError(Exception):
    """An outbound request did not receive a response in time."""

    def __init__(self, method: str, request_id: int, timeout: float) -> None:
        self.method = method
        self.request_id = request_id
        self.timeout = timeout
        super().__init__(f"Request {request_id} ({method}) timed out after {timeout}s")


def _describe(data: Any) -> str:
    if isinstance(data, dict):
        for key in ("details", "message", "method"):
            if key in data:
                return str(data[key])
    return str(data)
