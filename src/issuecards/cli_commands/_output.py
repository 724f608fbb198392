"""Shared CLI output formatters."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from issuecards.config import default_issues_dir
from issuecards.issues.models import Issue  # noqa: TC001
from issuecards.issues.store import IssueStore
from issuecards.mcp.models import ToolDescriptor  # noqa: TC001

console = Console()
err_console = Console(stderr=True)


def store_from_context(ctx: click.Context) -> IssueStore:
    root: Path | None = (ctx.obj or {}).get("issues_dir")
    return IssueStore(root or default_issues_dir())


def print_json(data: Any) -> None:
    console.print_json(json.dumps(data, default=str))


def print_tools_table(tools: list[ToolDescriptor]) -> None:
    """Pretty-print registered tools as a table."""
    table = Table(title="Registered Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Parameters")

    for tool in tools:
        params = ", ".join(f"{p.name}{'' if p.required else '?'}" for p in tool.parameters) or "-"
        table.add_row(tool.name, _truncate(tool.description), params)

    console.print(table)


def print_issues_table(issues: list[Issue], *, title: str) -> None:
    table = Table(title=title)
    table.add_column("#", style="cyan")
    table.add_column("Title")
    table.add_column("State")

    for issue in issues:
        table.add_row(issue.number, _truncate(issue.title), issue.state)

    console.print(table)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
