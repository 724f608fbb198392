"""Issue and task tools: list, show, current task, add/complete tasks, notes."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from issuecards.issues import tasks as task_ops
from issuecards.issues.errors import IssueStoreError, TaskNotFoundError
from issuecards.issues.models import Issue
from issuecards.tools._base import ISSUE_NUMBER_PATTERN, ToolArgs, mcp_tool
from issuecards.tools.context import get_store
from issuecards.tools.results import success


class ListIssuesArgs(ToolArgs):
    state: Literal["open", "closed", "all"] = Field(
        default="open", description="Filter by issue state (open, closed, all)"
    )


class ShowIssueArgs(ToolArgs):
    issue_number: str = Field(
        alias="issueNumber", pattern=ISSUE_NUMBER_PATTERN, description="The issue number to show"
    )


class EmptyArgs(ToolArgs):
    pass


class AddTaskArgs(ToolArgs):
    issue_number: str = Field(
        alias="issueNumber", pattern=ISSUE_NUMBER_PATTERN, description="The issue number to add the task to"
    )
    description: str = Field(min_length=1, description="The task description")


class AddNoteArgs(ToolArgs):
    issue_number: str | None = Field(
        default=None,
        alias="issueNumber",
        pattern=ISSUE_NUMBER_PATTERN,
        description="The issue number (defaults to the current issue)",
    )
    section: str = Field(min_length=1, description="Section heading to add the note under")
    note: str = Field(min_length=1, description="The note text")


@mcp_tool("mcp__listIssues", ListIssuesArgs)
async def list_issues(args: ListIssuesArgs) -> dict[str, Any]:
    """List all issues."""
    issues = get_store().list_issues(args.state)
    return success([issue.model_dump() for issue in issues])


@mcp_tool("mcp__showIssue", ShowIssueArgs)
async def show_issue(args: ShowIssueArgs) -> dict[str, Any]:
    """Show details of a specific issue."""
    issue = get_store().get_issue(args.issue_number)
    return success(_with_tasks(issue))


@mcp_tool("mcp__getCurrentTask", EmptyArgs)
async def get_current_task(args: EmptyArgs) -> dict[str, Any]:
    """Get the current task.

    The current task is the first unchecked task of the lowest-numbered open
    issue. ``data`` is null when no issue is open.
    """
    issue = get_store().current_issue()
    if issue is None:
        return success(None)
    task = task_ops.find_current_task(task_ops.extract_tasks(issue.content))
    return success(
        {
            "issueNumber": issue.number,
            "issueTitle": issue.title,
            "taskId": task.index if task else None,
            "description": task.text if task else None,
        }
    )


@mcp_tool("mcp__addTask", AddTaskArgs)
async def add_task(args: AddTaskArgs) -> dict[str, Any]:
    """Add a task to an issue."""
    store = get_store()
    issue = store.get_issue(args.issue_number)
    content, task = task_ops.add_task(issue.content, args.description)
    store.save_issue(issue.number, content, issue.state)
    return success({"issueNumber": issue.number, **task.model_dump()})


@mcp_tool("mcp__completeTask", EmptyArgs)
async def complete_task(args: EmptyArgs) -> dict[str, Any]:
    """Mark the current task complete and show the next one. Closes the issue after its last task."""
    store = get_store()
    issue = store.current_issue()
    if issue is None:
        raise IssueStoreError("No open issue")
    task = task_ops.find_current_task(task_ops.extract_tasks(issue.content))
    if task is None:
        raise TaskNotFoundError(f"No incomplete tasks in issue #{issue.number}")

    content = task_ops.update_task_status(issue.content, task.index, completed=True)
    store.save_issue(issue.number, content)
    next_task = task_ops.find_current_task(task_ops.extract_tasks(content))
    if next_task is None:
        store.close_issue(issue.number)
    return success(
        {
            "issueNumber": issue.number,
            "completedTask": task.model_copy(update={"completed": True}).model_dump(),
            "nextTask": next_task.model_dump() if next_task else None,
            "issueClosed": next_task is None,
        }
    )


@mcp_tool("mcp__addNote", AddNoteArgs)
async def add_note(args: AddNoteArgs) -> dict[str, Any]:
    """Add a note to a section of an issue."""
    store = get_store()
    if args.issue_number is not None:
        issue = store.get_issue(args.issue_number)
    else:
        current = store.current_issue()
        if current is None:
            raise IssueStoreError("No open issue")
        issue = current
    content = task_ops.add_note(issue.content, args.section, args.note)
    store.save_issue(issue.number, content, issue.state)
    return success({"issueNumber": issue.number, "section": args.section, "note": args.note})


def _with_tasks(issue: Issue) -> dict[str, Any]:
    return {**issue.model_dump(), "tasks": [t.model_dump() for t in task_ops.extract_tasks(issue.content)]}
