"""``issue-cards tools`` — inspect and run the registered MCP tools locally."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import click

from issuecards.cli_commands._output import console, err_console, print_json, print_tools_table


def _registry(ctx: click.Context) -> Any:
    from issuecards.config import ServerSettings
    from issuecards.mcp.server import build_registry

    settings = ServerSettings.from_env(issues_dir=(ctx.obj or {}).get("issues_dir"))
    return build_registry(settings)


@click.group()
def tools() -> None:
    """Inspect and run MCP tools."""


@tools.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print the tools/list payload as JSON.")
@click.pass_context
def list_tools(ctx: click.Context, as_json: bool) -> None:
    """List the tools the MCP server exposes."""
    registry = _registry(ctx)
    descriptors = registry.list()
    if as_json:
        print_json({"tools": [d.to_listing() for d in descriptors]})
        return
    if not descriptors:
        console.print("[yellow]No tools registered.[/yellow]")
        return
    print_tools_table(descriptors)


@tools.command("call")
@click.argument("name")
@click.option("--args", "raw_args", default="{}", help="Tool arguments as a JSON object.")
@click.pass_context
def call_tool(ctx: click.Context, name: str, raw_args: str) -> None:
    """Run tool NAME once and print its result."""
    from issuecards.mcp.errors import ProtocolError
    from issuecards.mcp.executor import ToolExecutor

    try:
        args = json.loads(raw_args)
    except json.JSONDecodeError as exc:
        err_console.print(f"[red]Invalid --args JSON:[/red] {exc}")
        sys.exit(2)

    executor = ToolExecutor(_registry(ctx))
    try:
        result = asyncio.run(executor.execute({"tool": name, "args": args}))
    except ProtocolError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    print_json(result)
    if isinstance(result, dict) and result.get("success") is False:
        sys.exit(1)
