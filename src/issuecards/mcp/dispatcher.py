"""ProtocolDispatcher — classifies inbound envelopes and routes them.

Requests get exactly one response, notifications never get one, and responses
are matched against our own outbound requests. Batches are expanded and their
members handled one after another, each reply written as soon as it exists.
"""

from __future__ import annotations

import logging
import traceback
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from issuecards.mcp.codec import decode, error_response
from issuecards.mcp.errors import (
    INTERNAL_ERROR,
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    ParseError,
    ProtocolError,
)
from issuecards.mcp.executor import with_content
from issuecards.mcp.models import (
    Envelope,
    JsonRpcError,
    JsonRpcErrorResponse,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    ServerInfo,
)
from issuecards.utils.telemetry import ATTR_REQUEST_ID, ATTR_RPC_METHOD, get_tracer

if TYPE_CHECKING:
    from issuecards.mcp.correlation import PendingRequests
    from issuecards.mcp.executor import ToolExecutor
    from issuecards.mcp.lifecycle import Lifecycle
    from issuecards.mcp.registry import ToolRegistry
    from issuecards.mcp.session_log import ProtocolLog

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

Sender = Callable[[Envelope], Awaitable[None]]
ExitHook = Callable[[], Awaitable[None]]
Response = JsonRpcResponse | JsonRpcErrorResponse


class ProtocolDispatcher:
    """Routes decoded envelopes to lifecycle, tool and correlation handlers."""

    def __init__(
        self,
        *,
        registry: ToolRegistry,
        executor: ToolExecutor,
        lifecycle: Lifecycle,
        pending: PendingRequests,
        send: Sender,
        server_info: ServerInfo,
        on_exit: ExitHook | None = None,
        protocol_log: ProtocolLog | None = None,
        content_shim: bool = True,
    ) -> None:
        self._registry = registry
        self._executor = executor
        self._lifecycle = lifecycle
        self._pending = pending
        self._send = send
        self._server_info = server_info
        self._on_exit = on_exit
        self._protocol_log = protocol_log
        self._content_shim = content_shim

        self._request_handlers: dict[str, Callable[[JsonRpcRequest], Awaitable[Response]]] = {
            "initialize": self._initialize,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "tools/execute": self._tools_execute,
            "get_tool_specs": self._get_tool_specs,
            "server/info": self._server_info_request,
            "shutdown": self._shutdown,
        }
        self._notification_handlers: dict[str, Callable[[JsonRpcNotification], Awaitable[None]]] = {
            "initialized": self._initialized,
            "notifications/initialized": self._initialized,
            "client/ready": self._client_ready,
            "client/exit": self._client_exit,
            "exit": self._client_exit,
            "$/cancelRequest": self._cancel_request,
            "notifications/cancelled": self._cancel_request,
        }

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def handle_line(self, line: str) -> None:
        """Decode one input line and handle whatever it contains."""
        text = line.strip()
        if not text:
            return

        try:
            decoded = decode(text)
        except ParseError as exc:
            logger.error("Error parsing JSON-RPC message: %s", exc)
            if self._protocol_log is not None:
                self._protocol_log.log_error(exc, {"rawInput": text})
            if exc.request_id is None:
                logger.error("Cannot extract request ID for error response")
                return
            await self._send(error_response(exc))
            return
        except InvalidRequestError as exc:
            await self._reject(exc)
            return

        if isinstance(decoded, list):
            if self._protocol_log is not None:
                self._protocol_log.log_request(
                    [m.to_wire() for m in decoded if not isinstance(m, InvalidRequestError)]
                )
            await self.dispatch_batch(decoded)
        else:
            if self._protocol_log is not None:
                self._protocol_log.log_request(decoded.to_wire())
            await self.dispatch(decoded)

    async def dispatch_batch(self, messages: list[Envelope | InvalidRequestError]) -> None:
        """Handle batch members in array order; replies are not aggregated."""
        logger.debug("Processing batch of %d messages", len(messages))
        for message in messages:
            if isinstance(message, InvalidRequestError):
                await self._reject(message)
            else:
                await self.dispatch(message)

    async def dispatch(self, message: Envelope) -> None:
        """Route a single decoded envelope by its shape."""
        if isinstance(message, JsonRpcRequest):
            await self._send(await self.handle_request(message))
        elif isinstance(message, JsonRpcNotification):
            await self.handle_notification(message)
        else:
            self.handle_response(message)

    # ------------------------------------------------------------------
    # Per-shape handlers
    # ------------------------------------------------------------------

    async def handle_request(self, request: JsonRpcRequest) -> Response:
        """Produce the one response owed for *request*; never raises."""
        logger.debug("Received request %s: %s", request.id, request.method)
        with _tracer.start_as_current_span("mcp.request") as span:
            span.set_attribute(ATTR_RPC_METHOD, request.method)
            span.set_attribute(ATTR_REQUEST_ID, request.id)
            try:
                handler = self._request_handlers.get(request.method)
                if handler is None:
                    raise MethodNotFoundError(request.method, request_id=request.id)
                return await handler(request)
            except ProtocolError as exc:
                return JsonRpcErrorResponse(id=request.id, error=exc.to_error())
            except Exception as exc:
                logger.error("Error handling request %s: %s", request.id, exc)
                if self._protocol_log is not None:
                    self._protocol_log.log_error(exc, {"method": request.method, "id": request.id})
                return JsonRpcErrorResponse(
                    id=request.id,
                    error=JsonRpcError(
                        code=INTERNAL_ERROR,
                        message="Internal error",
                        data={"message": str(exc), "stack": traceback.format_exc()},
                    ),
                )

    async def handle_notification(self, notification: JsonRpcNotification) -> None:
        """Run a notification handler; failures are logged, never answered."""
        logger.debug("Received notification: %s", notification.method)
        handler = self._notification_handlers.get(notification.method)
        if handler is None:
            logger.debug("Unknown notification method: %s", notification.method)
            return
        try:
            await handler(notification)
        except Exception as exc:
            logger.error("Error handling notification %s: %s", notification.method, exc)
            if self._protocol_log is not None:
                self._protocol_log.log_error(exc, {"notification": notification.method})

    def handle_response(self, response: JsonRpcResponse | JsonRpcErrorResponse) -> None:
        self._pending.resolve(response)

    async def _reject(self, exc: InvalidRequestError) -> None:
        logger.error("Invalid JSON-RPC message: %s", exc)
        if exc.answerable:
            await self._send(error_response(exc))

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def _initialize(self, request: JsonRpcRequest) -> Response:
        params = _object_params(request)
        capabilities = params.get("capabilities")
        client_info = params.get("clientInfo")
        version = self._lifecycle.negotiate(params.get("protocolVersion"))
        self._lifecycle.record_initialize(
            capabilities if isinstance(capabilities, dict) else None,
            client_info if isinstance(client_info, dict) else None,
        )
        return JsonRpcResponse(
            id=request.id,
            result={
                "protocolVersion": version,
                "capabilities": {"tools": {"listChanged": False}},
                "serverInfo": self._server_info.model_dump(),
            },
        )

    async def _tools_list(self, request: JsonRpcRequest) -> Response:
        listing = {"tools": [d.to_listing() for d in self._registry.list()]}
        return JsonRpcResponse(id=request.id, result=self._shape(listing))

    async def _get_tool_specs(self, request: JsonRpcRequest) -> Response:
        specs = {"tools": [d.to_legacy_spec() for d in self._registry.list()]}
        return JsonRpcResponse(id=request.id, result=self._shape(specs))

    async def _tools_call(self, request: JsonRpcRequest) -> Response:
        params = _object_params(request)
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidParamsError("Missing required parameter: name", request_id=request.id)
        arguments = params.get("arguments", {})
        if arguments is None:
            arguments = {}
        return await self._executor.respond(request.id, {"tool": name, "args": arguments})

    async def _tools_execute(self, request: JsonRpcRequest) -> Response:
        return await self._executor.respond(request.id, request.params)

    async def _server_info_request(self, request: JsonRpcRequest) -> Response:
        return JsonRpcResponse(id=request.id, result=self.server_info_payload())

    async def _shutdown(self, request: JsonRpcRequest) -> Response:
        self._lifecycle.request_shutdown()
        return JsonRpcResponse(id=request.id, result=None)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def _initialized(self, _: JsonRpcNotification) -> None:
        self._lifecycle.mark_initialized()

    async def _client_ready(self, _: JsonRpcNotification) -> None:
        await self._send(
            JsonRpcNotification(
                method="server/ready",
                params={"capabilities": {"tools": [d.to_summary() for d in self._registry.list()]}},
            )
        )

    async def _client_exit(self, _: JsonRpcNotification) -> None:
        if self._lifecycle.shutdown_requested:
            logger.debug("Client requested exit after shutdown")
        else:
            logger.debug("Client requested exit without shutdown")
        if self._on_exit is not None:
            await self._on_exit()

    async def _cancel_request(self, notification: JsonRpcNotification) -> None:
        params = notification.params if isinstance(notification.params, dict) else {}
        target = params.get("id", params.get("requestId"))
        # In-flight tool calls are not interruptible; the notice is only recorded.
        logger.debug("Request cancellation received for id: %s", target)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def server_info_payload(self) -> dict[str, Any]:
        """Payload of ``server/info`` (request reply and startup notification)."""
        return {
            **self._server_info.model_dump(exclude={"description"}),
            "capabilities": {
                "tools": [d.to_summary() for d in self._registry.list()],
                "protocol_version": self._lifecycle.protocol_version,
                "tools_support": {"supported": True},
                "async_tools": {"supported": False},
                "resources": {"supported": False},
                "prompts": {"supported": False},
            },
        }

    def _shape(self, result: Any) -> Any:
        return with_content(result) if self._content_shim else result


def _object_params(request: JsonRpcRequest) -> dict[str, Any]:
    if request.params is None:
        return {}
    if not isinstance(request.params, dict):
        raise InvalidParamsError("params must be an object", request_id=request.id)
    return request.params
