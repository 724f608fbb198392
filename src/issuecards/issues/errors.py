"""Error types for the issue store."""

from __future__ import annotations


class IssueStoreError(Exception):
    """Base error for issue store failures."""


class StoreNotInitializedError(IssueStoreError):
    """The issues directory does not exist yet."""

    def __init__(self, root: str) -> None:
        self.root = root
        super().__init__(f"Issue tracking is not initialized at {root} (run `issue-cards init` first)")


class IssueNotFoundError(IssueStoreError):
    """No issue file exists for the given number."""

    def __init__(self, number: str) -> None:
        self.number = number
        super().__init__(f"Issue #{number} not found")


class TaskNotFoundError(IssueStoreError):
    """A task index is out of range, or there is no task to act on."""

    def __init__(self, detail: str = "Task not found") -> None:
        self.detail = detail
        super().__init__(detail)
