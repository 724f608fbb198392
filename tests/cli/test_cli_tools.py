"""Tests for ``issue-cards tools`` CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from issuecards.cli import main
from issuecards.issues.store import IssueStore
from issuecards.tools.context import reset_store


def _invoke(root: Path, *args: str) -> object:
    runner = CliRunner()
    try:
        return runner.invoke(main, ["--dir", str(root), *args])
    finally:
        reset_store()


class TestToolsList:
    def test_json(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "tools", "list", "--json")
        assert result.exit_code == 0
        names = [t["name"] for t in json.loads(result.output)["tools"]]
        assert "mcp__listIssues" in names
        assert "mcp__onboarding" in names

    def test_table(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "tools", "list")
        assert result.exit_code == 0
        assert "Registered Tools" in result.output


class TestToolsCall:
    def test_call(self, tmp_path: Path) -> None:
        store = IssueStore(tmp_path)
        store.init()
        store.create_issue("Fix login bug", ["Reproduce"])

        result = _invoke(tmp_path, "tools", "call", "mcp__getCurrentTask")
        assert result.exit_code == 0
        assert json.loads(result.output)["data"]["description"] == "Reproduce"

    def test_call_with_args(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "tools", "call", "mcp__onboarding", "--args", '{"role": "reviewer"}')
        assert result.exit_code == 0
        assert json.loads(result.output)["data"]["title"] == "Reviewer Onboarding"

    def test_in_band_failure_exits_nonzero(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "tools", "call", "mcp__showIssue", "--args", '{"issueNumber": "x"}')
        assert result.exit_code == 1
        assert "ValidationError" in result.output

    def test_unknown_tool(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "tools", "call", "mcp__nope")
        assert result.exit_code == 1
        assert "Unknown tool: mcp__nope" in result.output

    def test_bad_json(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path, "tools", "call", "mcp__pm", "--args", "{nope")
        assert result.exit_code == 2
        assert "Invalid --args JSON" in result.output
