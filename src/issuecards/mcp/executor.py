"""ToolExecutor — validates and runs ``{tool, args}`` invocations.

Sits between the protocol dispatcher and the tool implementations: every
failure is turned into a :class:`ProtocolError` so that nothing an
implementation does can escape the request that triggered it.
"""

from __future__ import annotations

import logging
import traceback
from typing import TYPE_CHECKING, Any

from issuecards.mcp.codec import dumps_compact
from issuecards.mcp.errors import InternalError, InvalidParamsError, ProtocolError, ToolNotFoundError
from issuecards.mcp.models import JsonRpcErrorResponse, JsonRpcResponse, RequestId
from issuecards.utils.telemetry import ATTR_REQUEST_ID, ATTR_TOOL_NAME, ATTR_TOOL_OUTCOME, get_tracer

if TYPE_CHECKING:
    from issuecards.mcp.registry import ToolRegistry
    from issuecards.mcp.session_log import ProtocolLog

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class ToolExecutor:
    """Runs registered tools on behalf of ``tools/call`` style requests.

    With ``content_shim`` enabled, dict results that lack a ``content`` field
    gain one holding the compact JSON text of the whole result, for clients
    that expect content blocks.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        content_shim: bool = False,
        protocol_log: ProtocolLog | None = None,
    ) -> None:
        self._registry = registry
        self._content_shim = content_shim
        self._protocol_log = protocol_log

    async def execute(self, params: Any, *, request_id: RequestId | None = None) -> Any:
        """Validate *params* and return the tool's unmodified result.

        Raises:
            InvalidParamsError: ``tool``/``args`` missing or malformed, or the
                tool is not registered.
            InternalError: The implementation is missing or raised.
        """
        tool, args = _validate(params, request_id)
        if tool not in self._registry:
            raise ToolNotFoundError(tool, request_id=request_id)

        implementation = self._registry.implementation(tool)
        if implementation is None:
            raise InternalError({"details": f"Tool implementation not found: {tool}"}, request_id=request_id)

        with _tracer.start_as_current_span("mcp.tool.call") as span:
            span.set_attribute(ATTR_TOOL_NAME, tool)
            if request_id is not None:
                span.set_attribute(ATTR_REQUEST_ID, request_id)
            try:
                result = await implementation(args)
            except Exception as exc:
                span.set_attribute(ATTR_TOOL_OUTCOME, "error")
                logger.error("Error executing tool %s: %s", tool, exc)
                if self._protocol_log is not None:
                    self._protocol_log.log_error(exc, {"tool": tool, "args": args, "phase": "tool_execution"})
                raise InternalError(
                    {"message": str(exc), "type": type(exc).__name__, "stack": traceback.format_exc()},
                    request_id=request_id,
                ) from exc
            span.set_attribute(ATTR_TOOL_OUTCOME, "ok")
        return result

    async def respond(
        self,
        request_id: RequestId,
        params: Any,
    ) -> JsonRpcResponse | JsonRpcErrorResponse:
        """Run the tool and wrap the outcome in a JSON-RPC response."""
        try:
            result = await self.execute(params, request_id=request_id)
        except ProtocolError as exc:
            return JsonRpcErrorResponse(id=request_id, error=exc.to_error())
        if self._content_shim:
            result = with_content(result)
        return JsonRpcResponse(id=request_id, result=result)


def with_content(result: Any) -> Any:
    """Add a ``content`` array holding the JSON text of *result* if it has none."""
    if not isinstance(result, dict) or "content" in result:
        return result
    try:
        text = dumps_compact(result)
    except (TypeError, ValueError):
        text = str(result)
    return {**result, "content": [text]}


def _validate(params: Any, request_id: RequestId | None) -> tuple[str, dict[str, Any]]:
    if not isinstance(params, dict):
        raise InvalidParamsError("params must be an object", request_id=request_id)

    tool = params.get("tool")
    if tool is None or tool == "":
        raise InvalidParamsError("Missing required parameter: tool", request_id=request_id)
    if not isinstance(tool, str):
        raise InvalidParamsError("Invalid parameter: tool (must be a string)", request_id=request_id)

    args = params.get("args")
    if not isinstance(args, dict):
        raise InvalidParamsError(
            "Missing or invalid parameter: args (must be an object)", request_id=request_id
        )
    return tool, args
