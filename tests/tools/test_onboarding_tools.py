"""Tests for the onboarding tools."""

from __future__ import annotations

import pytest

from issuecards.mcp.registry import ToolRegistry
from issuecards.tools import onboarding
from issuecards.tools.results import create_error_response, not_found_error, operation_error, validation_error


class TestOnboarding:
    async def test_default_role(self) -> None:
        result = await onboarding.onboarding({})
        assert result["data"]["title"] == "Project Manager Onboarding"

    @pytest.mark.parametrize(
        ("role", "title"),
        [("developer", "Developer Onboarding"), ("reviewer", "Reviewer Onboarding")],
    )
    async def test_roles(self, role: str, title: str) -> None:
        result = await onboarding.onboarding({"role": role})
        assert result["data"]["title"] == title

    async def test_unknown_role(self) -> None:
        result = await onboarding.onboarding({"role": "cto"})
        assert result["success"] is False
        assert result["error"]["type"] == "ValidationError"

    async def test_shortcuts(self) -> None:
        assert (await onboarding.pm({}))["data"] == onboarding.GUIDES["pm"]
        assert (await onboarding.dev({}))["data"] == onboarding.GUIDES["developer"]
        assert (await onboarding.reviewer({}))["data"] == onboarding.GUIDES["reviewer"]

    def test_tool_map_names_are_real_tools(self, registry: ToolRegistry) -> None:
        for guide in onboarding.GUIDES.values():
            for entry in guide["toolMap"]:
                assert entry["name"] in registry


class TestWorkflow:
    async def test_lists_workflows_by_default(self) -> None:
        result = await onboarding.workflow({})
        assert result["success"] is True
        assert result["data"]["title"] == "Available Workflows"
        assert [w["id"] for w in result["data"]["workflows"]] == ["plan-feature", "bugfix", "task-management"]

    async def test_named_workflow(self) -> None:
        result = await onboarding.workflow({"workflow": "bugfix"})
        assert result["data"]["title"] == "Bugfix Workflow"
        assert [s["step"] for s in result["data"]["steps"]] == [1, 2, 3, 4]

    async def test_unknown_workflow(self) -> None:
        result = await onboarding.workflow({"workflow": "create-feature"})
        assert result["success"] is False
        assert result["error"]["type"] == "ValidationError"

    def test_steps_name_real_tools(self, registry: ToolRegistry) -> None:
        for guide in onboarding.WORKFLOWS.values():
            for step in guide["steps"]:
                assert step["tool"] in registry

    def test_described_in_registry(self, registry: ToolRegistry) -> None:
        descriptor = registry.get("mcp__workflow")
        assert descriptor.description == "Get step-by-step guides for common issue-cards workflows."
        assert [p.name for p in descriptor.parameters] == ["workflow"]


class TestResults:
    def test_shapes(self) -> None:
        assert create_error_response("X", "m", extra=1) == {
            "success": False,
            "error": {"type": "X", "message": "m", "extra": 1},
        }
        assert validation_error("bad")["error"]["type"] == "ValidationError"
        assert not_found_error("Issue")["error"]["message"] == "Issue not found"
        assert operation_error("addTask", "nope")["error"]["type"] == "AddTaskError"
