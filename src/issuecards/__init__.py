"""Issue Cards — markdown issue tracking with an MCP stdio server."""

from __future__ import annotations

__version__ = "0.1.0"
