"""``issue-cards mcp-stdio`` — run the MCP server over stdin/stdout."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from issuecards.cli_commands._output import err_console


@click.command("mcp-stdio")
@click.option("--debug", is_flag=True, help="Log debug diagnostics to stderr.")
@click.option("--log/--no-log", "log_protocol", default=None, help="Write the JSONL protocol session log.")
@click.option(
    "--log-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Location of the protocol session log.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML settings file.",
)
@click.pass_context
def mcp_stdio(
    ctx: click.Context,
    debug: bool,
    log_protocol: bool | None,
    log_path: Path | None,
    config_path: Path | None,
) -> None:
    """Serve the issue-cards tools to an MCP client over stdio.

    Stdout carries only JSON-RPC messages; diagnostics go to stderr.
    """
    from issuecards.config import ConfigError, load_settings
    from issuecards.mcp.server import configure_logging, serve_stdio

    try:
        settings = load_settings(
            config_path,
            issues_dir=(ctx.obj or {}).get("issues_dir"),
            debug=debug or None,
            log_protocol=log_protocol,
            log_path=log_path,
        )
    except ConfigError as exc:
        err_console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    configure_logging(settings.debug)
    try:
        asyncio.run(serve_stdio(settings))
    except KeyboardInterrupt:
        pass
