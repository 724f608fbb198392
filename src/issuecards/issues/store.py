"""IssueStore — reads and writes the ``open/`` and ``closed/`` issue directories.

Each issue is ``issue-NNNN.md`` whose first line is ``# Issue NNNN: <title>``.
The current issue is the lowest-numbered open one.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Literal

from issuecards.issues.errors import IssueNotFoundError, IssueStoreError, StoreNotInitializedError
from issuecards.issues.models import Issue, IssueState

logger = logging.getLogger(__name__)

StateFilter = Literal["open", "closed", "all"]

_FILE_NAME = re.compile(r"^issue-(\d{4})\.md$")
_NUMBER = re.compile(r"^\d{4}$")
_TITLE = re.compile(r"^#\s+Issue\s+\d+:\s+(.+)$")
UNTITLED = "Untitled Issue"


def extract_title(content: str) -> str:
    first_line = content.split("\n", 1)[0]
    match = _TITLE.match(first_line.strip())
    return match.group(1).strip() if match else UNTITLED


def render_issue(number: str, title: str, *, problem: str = "", tasks: Iterable[str] = ()) -> str:
    """Markdown for a new issue file."""
    lines = [f"# Issue {number}: {title}", "", "## Problem to be solved", problem or "", "", "## Tasks"]
    lines.extend(f"- [ ] {task}" for task in tasks)
    lines.append("")
    return "\n".join(lines)


class IssueStore:
    """Filesystem-backed issue collection rooted at *root*."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    @property
    def open_dir(self) -> Path:
        return self.root / "open"

    @property
    def closed_dir(self) -> Path:
        return self.root / "closed"

    def is_initialized(self) -> bool:
        return self.open_dir.is_dir() and self.closed_dir.is_dir()

    def init(self) -> bool:
        """Create the directory layout. Returns ``False`` if it already existed."""
        existed = self.is_initialized()
        self.open_dir.mkdir(parents=True, exist_ok=True)
        self.closed_dir.mkdir(parents=True, exist_ok=True)
        if not existed:
            logger.info("Initialized issue tracking at %s", self.root)
        return not existed

    def issue_path(self, number: str, state: IssueState = "open") -> Path:
        """Path of issue *number* in *state*'s directory (whether or not it exists).

        Raises:
            IssueNotFoundError: *number* is not a four-digit issue number.
        """
        if not isinstance(number, str) or not _NUMBER.match(number):
            raise IssueNotFoundError(str(number))
        directory = self.open_dir if state == "open" else self.closed_dir
        return directory / f"issue-{number}.md"

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_issues(self, state: StateFilter = "open") -> list[Issue]:
        """Issues in *state*, ordered by number (open before closed for ``all``)."""
        self._require_initialized()
        states: tuple[IssueState, ...] = ("open", "closed") if state == "all" else (state,)
        issues: list[Issue] = []
        for each in states:
            issues.extend(self._read_dir(each))
        return issues

    def get_issue(self, number: str) -> Issue:
        """Load issue *number*, looking in ``open/`` first, then ``closed/``.

        Raises:
            IssueNotFoundError: No such issue in either directory.
        """
        self._require_initialized()
        for state in ("open", "closed"):
            path = self.issue_path(number, state)
            if path.is_file():
                return self._read(path, number, state)
        raise IssueNotFoundError(number)

    def current_issue(self) -> Issue | None:
        """The lowest-numbered open issue, or ``None`` when nothing is open."""
        issues = self.list_issues("open")
        return issues[0] if issues else None

    def next_issue_number(self) -> str:
        highest = 0
        for directory in (self.open_dir, self.closed_dir):
            for number in self._numbers(directory):
                highest = max(highest, int(number))
        return f"{highest + 1:04d}"

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_issue(self, title: str, tasks: Iterable[str] = (), *, problem: str = "") -> Issue:
        self._require_initialized()
        number = self.next_issue_number()
        content = render_issue(number, title, problem=problem, tasks=tasks)
        self.issue_path(number).write_text(content, encoding="utf-8")
        logger.debug("Created issue %s", number)
        return Issue(number=number, title=title, state="open", content=content)

    def save_issue(self, number: str, content: str, state: IssueState = "open") -> None:
        self._require_initialized()
        path = self.issue_path(number, state)
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise IssueStoreError(f"Failed to write issue {number}: {exc}") from exc

    def close_issue(self, number: str) -> Issue:
        """Move issue *number* from ``open/`` to ``closed/``.

        Raises:
            IssueNotFoundError: The issue is not open.
        """
        self._require_initialized()
        source = self.issue_path(number, "open")
        if not source.is_file():
            raise IssueNotFoundError(number)
        target = self.issue_path(number, "closed")
        source.replace(target)
        logger.debug("Closed issue %s", number)
        return self._read(target, number, "closed")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_initialized(self) -> None:
        if not self.is_initialized():
            raise StoreNotInitializedError(str(self.root))

    def _read_dir(self, state: IssueState) -> list[Issue]:
        directory = self.open_dir if state == "open" else self.closed_dir
        return [self._read(directory / f"issue-{n}.md", n, state) for n in self._numbers(directory)]

    def _read(self, path: Path, number: str, state: IssueState) -> Issue:
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise IssueStoreError(f"Failed to read issue {number}: {exc}") from exc
        return Issue(number=number, title=extract_title(content), state=state, content=content)

    @staticmethod
    def _numbers(directory: Path) -> list[str]:
        if not directory.is_dir():
            return []
        numbers = []
        for entry in directory.iterdir():
            match = _FILE_NAME.match(entry.name)
            if match and entry.is_file():
                numbers.append(match.group(1))
        return sorted(numbers)
