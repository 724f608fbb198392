"""``issue-cards init|create|list|show|current`` — views over the issue store."""

from __future__ import annotations

import sys

import click

from issuecards.cli_commands._output import console, err_console, print_issues_table, store_from_context
from issuecards.issues.errors import IssueStoreError
from issuecards.issues.tasks import extract_tasks, find_current_task


@click.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """Create the issues directory layout."""
    store = store_from_context(ctx)
    if store.init():
        console.print(f"[green]Initialized issue tracking in {store.root}[/green]")
    else:
        console.print(f"[yellow]Issue tracking already initialized in {store.root}[/yellow]")


@click.command()
@click.argument("title")
@click.option("--task", "tasks", multiple=True, help="A task to add to the issue (repeatable).")
@click.option("--problem", default="", help="Description of the problem to solve.")
@click.pass_context
def create(ctx: click.Context, title: str, tasks: tuple[str, ...], problem: str) -> None:
    """Create a new open issue titled TITLE."""
    if not title.strip():
        err_console.print("[red]Error:[/red] Issue title must not be empty")
        sys.exit(2)
    try:
        issue = store_from_context(ctx).create_issue(title, tasks, problem=problem)
    except IssueStoreError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    console.print(f"[green]Created issue {issue.number}:[/green] {issue.title}")


@click.command("list")
@click.option(
    "--state",
    type=click.Choice(["open", "closed", "all"]),
    default="open",
    show_default=True,
    help="Which issues to list.",
)
@click.pass_context
def list_cmd(ctx: click.Context, state: str) -> None:
    """List issues."""
    try:
        issues = store_from_context(ctx).list_issues(state)  # type: ignore[arg-type]
    except IssueStoreError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    if not issues:
        console.print("[yellow]No issues found.[/yellow]")
        return
    print_issues_table(issues, title=f"Issues ({state})")


@click.command()
@click.argument("number")
@click.pass_context
def show(ctx: click.Context, number: str) -> None:
    """Print issue NUMBER."""
    try:
        issue = store_from_context(ctx).get_issue(number.zfill(4))
    except IssueStoreError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    console.print(issue.content, markup=False, highlight=False)


@click.command()
@click.pass_context
def current(ctx: click.Context) -> None:
    """Show the current issue and its next task."""
    try:
        issue = store_from_context(ctx).current_issue()
    except IssueStoreError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    if issue is None:
        console.print("[yellow]No open issues.[/yellow]")
        return

    console.print(f"[bold]Issue {issue.number}:[/bold] {issue.title}")
    task = find_current_task(extract_tasks(issue.content))
    if task is None:
        console.print("All tasks complete.")
    else:
        console.print(f"Current task: {task.text}", markup=False)
