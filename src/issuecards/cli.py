"""issue-cards CLI entrypoint."""

from __future__ import annotations

from pathlib import Path

import click

from issuecards import __version__
from issuecards.config import ISSUES_DIR_ENV


@click.group()
@click.version_option(version=__version__, prog_name="issue-cards")
@click.option(
    "--dir",
    "issues_dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar=ISSUES_DIR_ENV,
    default=None,
    help="Issues directory (default: .issues under the current directory).",
)
@click.pass_context
def main(ctx: click.Context, issues_dir: Path | None) -> None:
    """issue-cards — markdown issue tracking with an MCP stdio server."""
    ctx.ensure_object(dict)
    ctx.obj["issues_dir"] = issues_dir


# Register subcommands
from issuecards.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
