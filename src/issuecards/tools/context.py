"""Process-wide issue store used by the tool implementations."""

from __future__ import annotations

from pathlib import Path

from issuecards.config import default_issues_dir
from issuecards.issues.store import IssueStore

_store: IssueStore | None = None


def bind_store(root: Path | str) -> IssueStore:
    """Point every tool at the issue store under *root*."""
    global _store
    _store = IssueStore(root)
    return _store


def get_store() -> IssueStore:
    """The bound store, or one at the default location if none was bound."""
    global _store
    if _store is None:
        _store = IssueStore(default_issues_dir())
    return _store


def reset_store() -> None:
    global _store
    _store = None
