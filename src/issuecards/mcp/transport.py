"""StdioTransport — the MCP server side of a newline-delimited JSON-RPC stream.

Reads one envelope (or batch) per line from stdin, writes one per line to
stdout, and keeps every diagnostic on the logging side channel. Each input
line is handled in its own task, so a slow tool call does not hold up the
lines behind it and responses may complete out of order.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

from issuecards.config import ServerSettings
from issuecards.mcp.codec import encode
from issuecards.mcp.correlation import PendingRequests
from issuecards.mcp.dispatcher import ProtocolDispatcher
from issuecards.mcp.errors import InternalError
from issuecards.mcp.executor import ToolExecutor
from issuecards.mcp.lifecycle import ConnectionState, Lifecycle
from issuecards.mcp.models import (
    Envelope,
    JsonRpcErrorResponse,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    ServerInfo,
)

if TYPE_CHECKING:
    from issuecards.mcp.registry import ToolRegistry
    from issuecards.mcp.session_log import ProtocolLog

logger = logging.getLogger(__name__)

# Tool results (whole issue files) can be far larger than asyncio's 64 KiB default.
_STREAM_LIMIT = 16 * 1024 * 1024

_UNSET: Any = object()


class LineWriter(Protocol):
    """The writing half of a stream, as provided by :class:`asyncio.StreamWriter`."""

    def write(self, data: bytes) -> None: ...
    async def drain(self) -> None: ...


class StdioTransport:
    """One MCP session over a pair of byte streams (stdin/stdout by default).

    Usage::

        transport = StdioTransport(registry, settings=settings)
        await transport.serve()          # returns once the input closes

    ``reader``/``writer`` may be supplied to run the session over any
    :class:`asyncio.StreamReader` and writer pair.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        settings: ServerSettings | None = None,
        reader: asyncio.StreamReader | None = None,
        writer: LineWriter | None = None,
        protocol_log: ProtocolLog | None = None,
        on_connect: Callable[[], None] | None = None,
        on_disconnect: Callable[[], None] | None = None,
    ) -> None:
        self._settings = settings or ServerSettings()
        self._registry = registry
        self._reader = reader
        self._writer = writer
        self._protocol_log = protocol_log
        self.on_connect = on_connect
        self.on_disconnect = on_disconnect

        self._lifecycle = Lifecycle(self._settings.protocol_versions)
        self._pending = PendingRequests()
        self._write_lock = asyncio.Lock()
        self._reader_task: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[Any]] = set()
        self._disconnected = False

        executor = ToolExecutor(registry, content_shim=True, protocol_log=protocol_log)
        self._dispatcher = ProtocolDispatcher(
            registry=registry,
            executor=executor,
            lifecycle=self._lifecycle,
            pending=self._pending,
            send=self.send,
            server_info=ServerInfo(
                name=self._settings.server_name,
                version=self._settings.server_version,
            ),
            on_exit=self.stop,
            protocol_log=protocol_log,
        )

    @property
    def state(self) -> ConnectionState:
        return self._lifecycle.state

    @property
    def lifecycle(self) -> Lifecycle:
        return self._lifecycle

    @property
    def pending(self) -> PendingRequests:
        return self._pending

    @property
    def is_running(self) -> bool:
        return self._lifecycle.is_running

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Begin reading lines and announce the server. No-op if already running."""
        if self._lifecycle.is_running:
            return
        if self._reader is None or self._writer is None:
            await self._connect_stdio()
        self._lifecycle.start()
        self._disconnected = False
        logger.debug("MCP stdio server started")

        # Older clients expect an unsolicited server/info before they speak.
        await self.send_notification("server/info", self._dispatcher.server_info_payload())

        if self.on_connect is not None:
            self.on_connect()
        self._reader_task = asyncio.create_task(self._read_loop())

    async def serve(self) -> None:
        """Start, then run until the input closes or :meth:`stop` is called."""
        await self.start()
        await self.wait_closed()

    async def wait_closed(self) -> None:
        """Wait for the reader to finish, then for in-flight lines to complete."""
        if self._reader_task is not None:
            await asyncio.wait({self._reader_task})
        while self._inflight:
            await asyncio.wait(set(self._inflight))
        if self._protocol_log is not None:
            self._protocol_log.close()

    async def stop(self) -> None:
        """Stop reading input. No-op unless running."""
        if not self._lifecycle.stop():
            return
        task = self._reader_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        self._pending.cancel_all()
        if self._protocol_log is not None:
            self._protocol_log.log_message("info", "MCP stdio server stopped")
        logger.debug("MCP stdio server stopped")
        self._fire_disconnect()

    # ------------------------------------------------------------------
    # Outbound messages
    # ------------------------------------------------------------------

    def send_request(
        self,
        method: str,
        params: dict[str, Any] | list[Any] | None = None,
        *,
        timeout: float | None = _UNSET,
    ) -> asyncio.Future[Any]:
        """Send a request to the peer and return a future for its result.

        The future is returned at once; it resolves with the peer's
        ``result`` or fails with :class:`~issuecards.mcp.errors.RemoteError`
        (or :class:`~issuecards.mcp.errors.RequestTimeoutError`).
        """
        if timeout is _UNSET:
            timeout = self._settings.request_timeout
        request_id, future = self._pending.register(method, timeout)
        self._spawn(self.send(JsonRpcRequest(id=request_id, method=method, params=params)))
        return future

    async def send_notification(
        self,
        method: str,
        params: dict[str, Any] | list[Any] | None = None,
    ) -> None:
        await self.send(JsonRpcNotification(method=method, params=params))

    async def send(self, envelope: Envelope) -> None:
        """Write one envelope as a line. Failures are logged, never raised."""
        line = encode(envelope)
        if line is None and isinstance(envelope, JsonRpcResponse):
            # The request is still owed an answer.
            fallback = InternalError({"message": "Result is not JSON-serializable"}, request_id=envelope.id)
            line = encode(JsonRpcErrorResponse(id=envelope.id, error=fallback.to_error()))
        if line is None:
            if self._protocol_log is not None:
                self._protocol_log.log_message("error", "Error sending message", {"message": repr(envelope)})
            return
        if self._writer is None:
            logger.error("Cannot send message: transport not connected")
            return

        if self._settings.debug:
            logger.debug("Sending: %s", line.rstrip("\n"))
        try:
            async with self._write_lock:
                self._writer.write(line.encode("utf-8"))
                await self._writer.drain()
        except (OSError, RuntimeError) as exc:
            logger.error("Error sending message: %s", exc)
            if self._protocol_log is not None:
                self._protocol_log.log_error(exc, {"messageAttempt": envelope.to_wire()})
            return

        if self._protocol_log is not None and isinstance(envelope, JsonRpcResponse | JsonRpcErrorResponse):
            self._protocol_log.log_response(envelope.to_wire())

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    async def _read_loop(self) -> None:
        assert self._reader is not None
        while True:
            try:
                line = await self._reader.readline()
            except ValueError as exc:
                # Over-long line; the reader has already discarded it.
                logger.error("Discarding input line: %s", exc)
                continue
            if not line:
                break
            self._spawn(self._process_line(line))
        self._handle_close()

    async def _process_line(self, line: bytes) -> None:
        try:
            await self._dispatcher.handle_line(line.decode("utf-8", errors="replace"))
        except Exception:
            logger.exception("Unhandled error processing input line")

    def _handle_close(self) -> None:
        logger.debug("Connection closed")
        if self._lifecycle.stop():
            self._fire_disconnect()

    def _fire_disconnect(self) -> None:
        if self._disconnected:
            return
        self._disconnected = True
        if self.on_disconnect is not None:
            self.on_disconnect()

    def _spawn(self, coro: Any) -> None:
        task = asyncio.create_task(coro)
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _connect_stdio(self) -> None:
        loop = asyncio.get_running_loop()
        if self._reader is None:
            reader = asyncio.StreamReader(limit=_STREAM_LIMIT)
            await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
            self._reader = reader
        if self._writer is None:
            transport, protocol = await loop.connect_write_pipe(asyncio.streams.FlowControlMixin, sys.stdout)
            self._writer = asyncio.StreamWriter(transport, protocol, None, loop)
