"""Server configuration — issue store location, logging and protocol options."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from issuecards import __version__

ISSUES_DIR_ENV = "ISSUE_CARDS_DIR"
DEBUG_ENV = "ISSUE_CARDS_DEBUG"
LOG_PATH_ENV = "ISSUE_CARDS_LOG_PATH"

SUPPORTED_PROTOCOL_VERSIONS = ("2024-11-05", "2025-03-26")


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or fails validation."""


def default_issues_dir() -> Path:
    """``$ISSUE_CARDS_DIR`` if set, otherwise ``.issues`` under the cwd."""
    env = os.environ.get(ISSUES_DIR_ENV)
    return Path(env) if env else Path.cwd() / ".issues"


class ServerSettings(BaseModel):
    """Settings for the stdio MCP server and the issue store behind it.

    ``request_timeout`` applies to requests *this* server sends to its peer;
    ``None`` waits forever. ``otlp_endpoint`` enables span export (``otel`` extra).
    """

    issues_dir: Path = Field(default_factory=default_issues_dir)
    debug: bool = False
    log_protocol: bool = True
    log_path: Path | None = None
    request_timeout: float | None = Field(default=None, gt=0)
    otlp_endpoint: str | None = None
    server_name: str = "issue-cards-mcp"
    server_version: str = __version__
    protocol_versions: list[str] = Field(
        default_factory=lambda: list(SUPPORTED_PROTOCOL_VERSIONS),
        min_length=1,
    )

    @classmethod
    def from_env(cls, **overrides: Any) -> ServerSettings:
        """Settings from ``ISSUE_CARDS_*`` environment variables plus *overrides*."""
        data: dict[str, Any] = {}
        if os.environ.get(DEBUG_ENV, "").lower() in {"1", "true", "yes"}:
            data["debug"] = True
        if os.environ.get(LOG_PATH_ENV):
            data["log_path"] = os.environ[LOG_PATH_ENV]
        data.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc


def load_settings(path: Path | None = None, **overrides: Any) -> ServerSettings:
    """Load settings from an optional YAML file, then apply *overrides*.

    Environment variables in the form ``${VAR}`` or ``$VAR`` are expanded
    before parsing. Overrides whose value is ``None`` are ignored.

    Raises:
        ConfigError: On unreadable files, YAML errors, non-mapping documents
            or schema violations.
    """
    if path is None:
        return ServerSettings.from_env(**overrides)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc

    try:
        data: Any = yaml.safe_load(os.path.expandvars(raw))
    except yaml.YAMLError as exc:
        raise ConfigError(f"YAML parse error: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    return ServerSettings.from_env(**{**data, **{k: v for k, v in overrides.items() if v is not None}})
