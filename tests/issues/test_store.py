"""Tests for the filesystem issue store."""

from __future__ import annotations

from pathlib import Path

import pytest

from issuecards.issues.errors import IssueNotFoundError, StoreNotInitializedError
from issuecards.issues.store import UNTITLED, IssueStore, extract_title


class TestLayout:
    def test_init(self, tmp_path: Path) -> None:
        store = IssueStore(tmp_path / ".issues")
        assert not store.is_initialized()
        assert store.init() is True
        assert store.open_dir.is_dir()
        assert store.closed_dir.is_dir()
        assert store.init() is False

    def test_uninitialized_store(self, tmp_path: Path) -> None:
        with pytest.raises(StoreNotInitializedError, match="issue-cards init"):
            IssueStore(tmp_path).list_issues()

    @pytest.mark.parametrize("number", ["1", "00001", "abcd", ""])
    def test_invalid_number(self, store: IssueStore, number: str) -> None:
        with pytest.raises(IssueNotFoundError):
            store.issue_path(number)


class TestQueries:
    def test_list_open(self, seeded_store: IssueStore) -> None:
        issues = seeded_store.list_issues()
        assert [(i.number, i.title, i.state) for i in issues] == [
            ("0001", "Fix login bug", "open"),
            ("0002", "Add dark mode", "open"),
        ]

    def test_list_states(self, seeded_store: IssueStore) -> None:
        seeded_store.close_issue("0001")
        assert [i.number for i in seeded_store.list_issues("open")] == ["0002"]
        assert [i.number for i in seeded_store.list_issues("closed")] == ["0001"]
        assert [i.number for i in seeded_store.list_issues("all")] == ["0002", "0001"]

    def test_ignores_unrelated_files(self, seeded_store: IssueStore) -> None:
        (seeded_store.open_dir / "notes.md").write_text("hi")
        (seeded_store.open_dir / "issue-12.md").write_text("hi")
        assert len(seeded_store.list_issues()) == 2

    def test_get_issue_checks_closed(self, seeded_store: IssueStore) -> None:
        seeded_store.close_issue("0002")
        issue = seeded_store.get_issue("0002")
        assert issue.state == "closed"
        assert issue.title == "Add dark mode"

    def test_get_missing(self, seeded_store: IssueStore) -> None:
        with pytest.raises(IssueNotFoundError, match="Issue #0009 not found"):
            seeded_store.get_issue("0009")

    def test_current_issue(self, seeded_store: IssueStore) -> None:
        assert seeded_store.current_issue().number == "0001"
        seeded_store.close_issue("0001")
        assert seeded_store.current_issue().number == "0002"

    def test_no_current_issue(self, store: IssueStore) -> None:
        assert store.current_issue() is None

    def test_next_number_spans_both_states(self, seeded_store: IssueStore) -> None:
        seeded_store.close_issue("0002")
        assert seeded_store.next_issue_number() == "0003"


class TestMutations:
    def test_create_issue_content(self, store: IssueStore) -> None:
        issue = store.create_issue("Write docs", ["Outline", "Draft"], problem="No docs")
        assert issue.number == "0001"
        text = (store.open_dir / "issue-0001.md").read_text()
        assert text.startswith("# Issue 0001: Write docs\n")
        assert "## Problem to be solved\nNo docs\n" in text
        assert "## Tasks\n- [ ] Outline\n- [ ] Draft\n" in text

    def test_save_issue(self, seeded_store: IssueStore) -> None:
        seeded_store.save_issue("0001", "# Issue 0001: Renamed\n")
        assert seeded_store.get_issue("0001").title == "Renamed"

    def test_close_missing(self, store: IssueStore) -> None:
        with pytest.raises(IssueNotFoundError):
            store.close_issue("0001")


class TestExtractTitle:
    def test_title(self) -> None:
        assert extract_title("# Issue 12: Something  \nbody") == "Something"

    def test_untitled(self) -> None:
        assert extract_title("no heading") == UNTITLED
