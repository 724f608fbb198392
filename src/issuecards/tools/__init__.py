"""Built-in MCP tools and the metadata for tools that do not describe themselves."""

from __future__ import annotations

from types import ModuleType

from issuecards.mcp.models import ToolParameter
from issuecards.mcp.registry import FallbackMetadata

FALLBACK_METADATA: dict[str, FallbackMetadata] = {
    "mcp__pm": FallbackMetadata("Onboarding guidance for project managers"),
    "mcp__dev": FallbackMetadata("Onboarding guidance for developers"),
    "mcp__reviewer": FallbackMetadata("Onboarding guidance for reviewers"),
    "mcp__listIssues": FallbackMetadata(
        "List all issues",
        (ToolParameter(name="state", description="Filter by issue state (open, closed, all)"),),
    ),
    "mcp__showIssue": FallbackMetadata(
        "Show details of a specific issue",
        (ToolParameter(name="issueNumber", description="The issue number to show", required=True),),
    ),
}


def tool_modules() -> list[ModuleType]:
    """Modules scanned by the tool registry."""
    from issuecards.tools import issues, onboarding

    return [issues, onboarding]
