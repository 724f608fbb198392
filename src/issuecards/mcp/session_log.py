"""Protocol session log — every MCP message in and out, as JSONL.

The log is a diagnostic record only: it never writes to the protocol stream
and a log that cannot be written simply disables itself.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import sys
import tempfile
import traceback
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from issuecards import __version__

logger = logging.getLogger(__name__)


class _JsonLineFormatter(logging.Formatter):
    """Format a record's ``entry`` payload as one line of JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = dict(getattr(record, "entry", {}))
        entry.setdefault("timestamp", _now())
        return json.dumps(entry, default=str)


def default_log_path() -> Path:
    stamp = datetime.now(UTC).strftime("%Y-%m-%dT%H-%M-%S")
    return Path(tempfile.gettempdir()) / f"issue-cards-mcp-{stamp}.jsonl"


class ProtocolLog:
    """Append-only JSONL record of one server session."""

    def __init__(self, path: Path | None = None, *, enabled: bool = True) -> None:
        self.path = path or default_log_path()
        self.enabled = enabled
        self._closed = False
        self._handler: logging.Handler | None = None
        # Unmanaged logger: never propagates to the stderr side channel.
        self._logger = logging.Logger(f"issuecards.protocol.{id(self)}", level=logging.DEBUG)
        if enabled:
            self._open()

    def _open(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")
        except OSError as exc:
            logger.warning("Protocol log disabled, cannot open %s: %s", self.path, exc)
            self.enabled = False
            return
        handler.setFormatter(_JsonLineFormatter())
        self._logger.addHandler(handler)
        self._handler = handler
        self._emit(
            {
                "type": "meta",
                "version": __version__,
                "pid": os.getpid(),
                "platform": sys.platform,
                "python": platform.python_version(),
                "logPath": str(self.path),
            }
        )

    def log_request(self, message: Any) -> None:
        self._emit({"type": "request", "data": message})

    def log_response(self, message: dict[str, Any]) -> None:
        self._emit({"type": "response", "data": message})

    def log_error(self, error: BaseException, context: dict[str, Any] | None = None) -> None:
        self._emit(
            {
                "type": "error",
                "error": {
                    "message": str(error),
                    "name": type(error).__name__,
                    "stack": "".join(traceback.format_exception(error)),
                },
                "context": context or {},
            }
        )

    def log_message(self, level: str, message: str, context: dict[str, Any] | None = None) -> None:
        self._emit({"type": "message", "level": level, "message": message, "context": context or {}})

    def close(self) -> None:
        """Write the shutdown footer and release the file. Idempotent."""
        if self._closed:
            return
        self._emit({"type": "meta", "event": "shutdown"})
        self._closed = True
        self.enabled = False
        if self._handler is not None:
            self._logger.removeHandler(self._handler)
            self._handler.close()
            self._handler = None

    def _emit(self, entry: dict[str, Any]) -> None:
        if not self.enabled or self._closed:
            return
        entry = {**entry, "timestamp": _now()}
        self._logger.info(entry.get("type", "message"), extra={"entry": entry})


def _now() -> str:
    return datetime.now(UTC).isoformat()
