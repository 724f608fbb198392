"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from issuecards.cli_commands.issues import create, current, init, list_cmd, show
    from issuecards.cli_commands.serve import mcp_stdio
    from issuecards.cli_commands.tools import tools

    cli.add_command(mcp_stdio)
    cli.add_command(tools)
    cli.add_command(init)
    cli.add_command(create)
    cli.add_command(list_cmd)
    cli.add_command(show)
    cli.add_command(current)
