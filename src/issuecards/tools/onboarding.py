"""Onboarding guidance tools for the pm, developer and reviewer roles, plus workflow guides."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from issuecards.tools._base import ToolArgs, mcp_tool
from issuecards.tools.results import success

Role = Literal["pm", "developer", "reviewer"]

GUIDES: dict[str, dict[str, Any]] = {
    "pm": {
        "title": "Project Manager Onboarding",
        "description": "Welcome to issue-cards project management! Here's how to get started:",
        "workflows": [
            {
                "name": "Track project progress",
                "steps": [
                    "1. List all issues with mcp__listIssues",
                    "2. View specific issue details with mcp__showIssue",
                    "3. Check current task status with mcp__getCurrentTask",
                ],
            },
            {
                "name": "Plan the work",
                "steps": [
                    "1. Add well-defined tasks to an issue with mcp__addTask",
                    "2. Record context in the issue's sections with mcp__addNote",
                ],
            },
        ],
        "bestPractices": [
            "Be specific about problem statements",
            "Break tasks into small, manageable chunks (1-2 hours of work)",
            "Include clear success criteria in task descriptions",
            "Use the Questions section to identify unknowns early",
        ],
        "toolMap": [
            {"name": "mcp__listIssues", "description": "View all issues in the system"},
            {"name": "mcp__showIssue", "description": "View details of a specific issue"},
            {"name": "mcp__addTask", "description": "Add a task to an existing issue"},
            {"name": "mcp__addNote", "description": "Add notes to issue sections"},
        ],
    },
    "developer": {
        "title": "Developer Onboarding",
        "description": "Welcome to issue-cards developer workflow! Here's how to get started:",
        "workflows": [
            {
                "name": "Task workflow",
                "steps": [
                    "1. Get your current task with mcp__getCurrentTask",
                    "2. Record questions or failed approaches with mcp__addNote",
                    "3. Complete the task with mcp__completeTask when finished",
                ],
            },
            {
                "name": "Contributing to issue planning",
                "steps": [
                    "1. Add suggestions to the Planned approach section with mcp__addNote",
                    "2. Suggest additional tasks with mcp__addTask",
                ],
            },
        ],
        "bestPractices": [
            "Document failed approaches to help others learn",
            "Break down complex tasks into smaller sub-tasks",
            "Complete tasks one at a time in sequence",
        ],
        "toolMap": [
            {"name": "mcp__getCurrentTask", "description": "View your current task"},
            {"name": "mcp__completeTask", "description": "Mark your current task complete"},
            {"name": "mcp__addNote", "description": "Add notes to any section"},
        ],
    },
    "reviewer": {
        "title": "Reviewer Onboarding",
        "description": "Welcome to issue-cards review workflow! Here's how to get started:",
        "workflows": [
            {
                "name": "Review workflow",
                "steps": [
                    "1. List issues with mcp__listIssues to find completed issues",
                    "2. Review issue details with mcp__showIssue",
                    "3. Add feedback with mcp__addNote",
                    "4. Add follow-up tasks with mcp__addTask if needed",
                ],
            }
        ],
        "bestPractices": [
            "Check that all tasks are completed",
            "Verify that questions have been resolved",
            "Ensure the solution matches the original problem statement",
        ],
        "toolMap": [
            {"name": "mcp__listIssues", "description": "View all issues in the system"},
            {"name": "mcp__showIssue", "description": "View details of a specific issue"},
            {"name": "mcp__addNote", "description": "Add review feedback to sections"},
            {"name": "mcp__addTask", "description": "Add follow-up tasks if needed"},
        ],
    },
}


class OnboardingArgs(ToolArgs):
    role: Role = Field(default="pm", description="Role-specific onboarding (pm, developer, reviewer)")


@mcp_tool("mcp__onboarding", OnboardingArgs)
async def onboarding(args: OnboardingArgs) -> dict[str, Any]:
    """Get onboarding information for issue-cards workflows."""
    return success(GUIDES[args.role])


@mcp_tool("mcp__pm")
async def pm(_: dict[str, Any]) -> dict[str, Any]:
    return success(GUIDES["pm"])


@mcp_tool("mcp__dev")
async def dev(_: dict[str, Any]) -> dict[str, Any]:
    return success(GUIDES["developer"])


@mcp_tool("mcp__reviewer")
async def reviewer(_: dict[str, Any]) -> dict[str, Any]:
    return success(GUIDES["reviewer"])


WorkflowName = Literal["plan-feature", "bugfix", "task-management"]

WORKFLOWS: dict[str, dict[str, Any]] = {
    "plan-feature": {
        "title": "Plan Feature Workflow",
        "description": "Guide for turning a feature issue into a clear plan",
        "steps": [
            {
                "step": 1,
                "description": "Find the feature issue",
                "tool": "mcp__listIssues",
                "args": {"state": "open"},
            },
            {
                "step": 2,
                "description": "Read the problem statement",
                "tool": "mcp__showIssue",
                "args": {"issueNumber": "[Issue number]"},
            },
            {
                "step": 3,
                "description": "Describe the implementation approach",
                "tool": "mcp__addNote",
                "args": {
                    "issueNumber": "[Issue number]",
                    "section": "Planned approach",
                    "note": "[Planned implementation approach]",
                },
            },
            {
                "step": 4,
                "description": "Break the feature into tasks",
                "tool": "mcp__addTask",
                "args": {"issueNumber": "[Issue number]", "description": "[Research, design, build or test step]"},
            },
        ],
        "tips": [
            "Create the issue first with `issue-cards create`",
            "Problems should focus on user/business needs, not implementation",
            "Tasks should be ordered by dependency and complexity",
            "Include research tasks before implementation tasks",
        ],
    },
    "bugfix": {
        "title": "Bugfix Workflow",
        "description": "Guide for working through a bug fix",
        "steps": [
            {
                "step": 1,
                "description": "Get the next bugfix task",
                "tool": "mcp__getCurrentTask",
                "args": {},
            },
            {
                "step": 2,
                "description": "Document failed approaches",
                "tool": "mcp__addNote",
                "args": {
                    "section": "Failed approaches",
                    "note": "[Approach that didn't work and why]",
                },
            },
            {
                "step": 3,
                "description": "Add a regression test task if one is missing",
                "tool": "mcp__addTask",
                "args": {"issueNumber": "[Issue number]", "description": "Write tests to prevent regression"},
            },
            {
                "step": 4,
                "description": "Complete tasks as they're finished",
                "tool": "mcp__completeTask",
                "args": {},
            },
        ],
        "tips": [
            "Always include reproduction steps in bug descriptions",
            "Note environment details where the bug occurs",
            "Document failed approaches to prevent others from trying the same thing",
            "Add tests that would have caught the bug",
        ],
    },
    "task-management": {
        "title": "Task Management Workflow",
        "description": "Guide for efficient task management",
        "steps": [
            {
                "step": 1,
                "description": "Check current task",
                "tool": "mcp__getCurrentTask",
                "args": {},
            },
            {
                "step": 2,
                "description": "Add clarifying questions if needed",
                "tool": "mcp__addNote",
                "args": {"section": "Questions to resolve", "note": "[Your question about the task]"},
            },
            {
                "step": 3,
                "description": "Add implementation notes",
                "tool": "mcp__addNote",
                "args": {"section": "Planned approach", "note": "[Details about your implementation approach]"},
            },
            {
                "step": 4,
                "description": "Complete task when finished",
                "tool": "mcp__completeTask",
                "args": {},
            },
        ],
        "tips": [
            "Focus on one task at a time",
            "Document your approach before implementing",
            "Ask questions early rather than making assumptions",
            "Check the 'Problem to be solved' section for context",
        ],
    },
}


class WorkflowArgs(ToolArgs):
    workflow: WorkflowName | None = Field(default=None, description="Workflow guide to show; omit to list them all")


@mcp_tool("mcp__workflow", WorkflowArgs)
async def workflow(args: WorkflowArgs) -> dict[str, Any]:
    """Get step-by-step guides for common issue-cards workflows."""
    if args.workflow is not None:
        return success(WORKFLOWS[args.workflow])
    return success(
        {
            "title": "Available Workflows",
            "workflows": [
                {"id": key, "title": guide["title"], "description": guide["description"]}
                for key, guide in WORKFLOWS.items()
            ],
        }
    )
