"""Markdown issue store — one ``issue-NNNN.md`` file per issue."""

from issuecards.issues.errors import (
    IssueNotFoundError,
    IssueStoreError,
    StoreNotInitializedError,
    TaskNotFoundError,
)
from issuecards.issues.models import Issue, Task
from issuecards.issues.store import IssueStore

__all__ = [
    "Issue",
    "IssueNotFoundError",
    "IssueStore",
    "IssueStoreError",
    "StoreNotInitializedError",
    "Task",
    "TaskNotFoundError",
]
