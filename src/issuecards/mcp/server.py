"""Process-level wiring for the stdio MCP server.

Builds the tool registry, attaches the protocol session log and signal
handlers, and runs one :class:`StdioTransport` until its input closes.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from issuecards.config import ServerSettings
from issuecards.mcp.registry import ToolRegistry
from issuecards.mcp.session_log import ProtocolLog
from issuecards.mcp.transport import StdioTransport
from issuecards.utils.telemetry import configure_telemetry

logger = logging.getLogger(__name__)

_LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def configure_logging(debug: bool = False) -> None:
    """Send ``issuecards`` diagnostics to stderr; stdout carries only protocol traffic."""
    root = logging.getLogger("issuecards")
    for handler in root.handlers[:]:
        if getattr(handler, "_issuecards_stderr", False):
            root.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    handler._issuecards_stderr = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    root.propagate = False


def build_registry(settings: ServerSettings) -> ToolRegistry:
    """Registry over every built-in tool module, bound to *settings*' issue store."""
    from issuecards.tools import FALLBACK_METADATA, tool_modules
    from issuecards.tools.context import bind_store

    bind_store(settings.issues_dir)
    return ToolRegistry(tool_modules(), fallback=FALLBACK_METADATA)


def create_transport(settings: ServerSettings) -> StdioTransport:
    protocol_log = ProtocolLog(settings.log_path, enabled=settings.log_protocol)
    transport = StdioTransport(build_registry(settings), settings=settings, protocol_log=protocol_log)
    transport.on_connect = lambda: logger.debug("MCP stdio server connected")
    transport.on_disconnect = lambda: logger.debug("MCP stdio server disconnected")
    return transport


async def serve_stdio(settings: ServerSettings | None = None) -> None:
    """Run the stdio server until stdin closes, SIGINT/SIGTERM, or ``client/exit``."""
    settings = settings or ServerSettings.from_env()
    if settings.otlp_endpoint:
        configure_telemetry(service_name=settings.server_name, otlp_endpoint=settings.otlp_endpoint)
    transport = create_transport(settings)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda s=sig: _on_signal(transport, s))
        except (NotImplementedError, RuntimeError):
            logger.debug("Signal handlers unavailable for %s", sig.name)

    await transport.serve()


def _on_signal(transport: StdioTransport, sig: signal.Signals) -> None:
    logger.debug("Received %s signal", sig.name)
    asyncio.ensure_future(transport.stop())
