"""Tests for the issue and task MCP tools."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from issuecards.issues.store import IssueStore
from issuecards.tools import issues as tools
from issuecards.tools.results import not_found_error, operation_error


class TestListIssues:
    async def test_defaults_to_open(self, seeded_store: IssueStore) -> None:
        seeded_store.close_issue("0002")
        result = await tools.list_issues({})
        assert result["success"] is True
        assert [i["number"] for i in result["data"]] == ["0001"]
        assert set(result["data"][0]) == {"number", "title", "state", "content"}

    async def test_all(self, seeded_store: IssueStore) -> None:
        seeded_store.close_issue("0002")
        result = await tools.list_issues({"state": "all"})
        assert [i["state"] for i in result["data"]] == ["open", "closed"]

    async def test_empty(self, store: IssueStore) -> None:
        assert await tools.list_issues({"state": "open"}) == {"success": True, "data": []}

    async def test_invalid_state(self, store: IssueStore) -> None:
        result = await tools.list_issues({"state": "pending"})
        assert result["success"] is False
        assert result["error"]["type"] == "ValidationError"
        assert result["error"]["errors"][0].startswith("state")

    async def test_unknown_argument(self, store: IssueStore) -> None:
        result = await tools.list_issues({"colour": "red"})
        assert result["error"]["type"] == "ValidationError"

    async def test_uninitialized_store(self, tmp_path: Path) -> None:
        from issuecards.tools.context import bind_store, reset_store

        bind_store(tmp_path / "nowhere")
        try:
            result = await tools.list_issues({})
        finally:
            reset_store()
        assert result["error"]["type"] == "ListIssuesError"
        assert result["error"]["message"].startswith("Failed to listIssues:")


class TestShowIssue:
    async def test_with_tasks(self, seeded_store: IssueStore) -> None:
        result = await tools.show_issue({"issueNumber": "0001"})
        data = result["data"]
        assert data["title"] == "Fix login bug"
        assert data["tasks"] == [
            {"index": 0, "text": "Reproduce the bug", "completed": False},
            {"index": 1, "text": "Write a failing test", "completed": False},
        ]

    async def test_not_found(self, seeded_store: IssueStore) -> None:
        assert await tools.show_issue({"issueNumber": "0042"}) == not_found_error("Issue", "0042")

    async def test_bad_number_format(self, seeded_store: IssueStore) -> None:
        result = await tools.show_issue({"issueNumber": "42"})
        assert result["error"]["type"] == "ValidationError"

    async def test_missing_number(self, seeded_store: IssueStore) -> None:
        result = await tools.show_issue({})
        assert result["error"]["errors"] == ["issueNumber Field required"]


class TestGetCurrentTask:
    async def test_current(self, seeded_store: IssueStore) -> None:
        result = await tools.get_current_task({})
        assert result["data"] == {
            "issueNumber": "0001",
            "issueTitle": "Fix login bug",
            "taskId": 0,
            "description": "Reproduce the bug",
        }

    async def test_no_open_issue(self, store: IssueStore) -> None:
        assert await tools.get_current_task({}) == {"success": True, "data": None}

    async def test_issue_without_open_tasks(self, store: IssueStore) -> None:
        store.create_issue("Nothing to do")
        result = await tools.get_current_task({})
        assert result["data"]["taskId"] is None
        assert result["data"]["description"] is None


class TestAddTask:
    async def test_adds(self, seeded_store: IssueStore) -> None:
        result = await tools.add_task({"issueNumber": "0002", "description": "Test contrast"})
        assert result["data"] == {"issueNumber": "0002", "index": 1, "text": "Test contrast", "completed": False}
        assert "- [ ] Test contrast" in seeded_store.get_issue("0002").content

    async def test_missing_issue(self, seeded_store: IssueStore) -> None:
        result = await tools.add_task({"issueNumber": "0099", "description": "x"})
        assert result == not_found_error("Issue", "0099")

    async def test_empty_description(self, seeded_store: IssueStore) -> None:
        result = await tools.add_task({"issueNumber": "0001", "description": ""})
        assert result["error"]["type"] == "ValidationError"


class TestCompleteTask:
    async def test_completes_and_advances(self, seeded_store: IssueStore) -> None:
        result = await tools.complete_task({})
        assert result["data"]["completedTask"] == {"index": 0, "text": "Reproduce the bug", "completed": True}
        assert result["data"]["nextTask"]["text"] == "Write a failing test"
        assert "- [x] Reproduce the bug" in seeded_store.get_issue("0001").content
        assert result["data"]["issueClosed"] is False

    async def test_last_task_closes_issue(self, seeded_store: IssueStore) -> None:
        await tools.complete_task({})
        result = await tools.complete_task({})
        assert result["data"]["nextTask"] is None
        assert result["data"]["issueClosed"] is True
        assert seeded_store.get_issue("0001").state == "closed"
        current = seeded_store.current_issue()
        assert current is not None
        assert current.number == "0002"

    async def test_nothing_left(self, store: IssueStore) -> None:
        store.create_issue("Done already")
        result = await tools.complete_task({})
        assert result["error"]["type"] == "CompleteTaskError"

    async def test_no_open_issue(self, store: IssueStore) -> None:
        result = await tools.complete_task({})
        assert result == operation_error("completeTask", "Failed to completeTask: No open issue")


class TestAddNote:
    async def test_current_issue(self, seeded_store: IssueStore) -> None:
        result = await tools.add_note({"section": "Problem to be solved", "note": "Only on Safari."})
        assert result["data"]["issueNumber"] == "0001"
        assert "Only on Safari." in seeded_store.get_issue("0001").content

    async def test_specific_issue(self, seeded_store: IssueStore) -> None:
        await tools.add_note({"issueNumber": "0002", "section": "Questions", "note": "Which palette?"})
        assert "## Questions\nWhich palette?" in seeded_store.get_issue("0002").content

    async def test_no_open_issue(self, store: IssueStore) -> None:
        result = await tools.add_note({"section": "Notes", "note": "x"})
        assert result["error"]["type"] == "AddNoteError"


class TestUnexpectedErrors:
    async def test_propagate(self, seeded_store: IssueStore) -> None:
        with patch.object(IssueStore, "list_issues", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError, match="boom"):
                await tools.list_issues({})
