"""Shared fixtures: an isolated issue store, the tool registry and an in-memory writer."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from issuecards.issues.store import IssueStore
from issuecards.mcp.registry import ToolRegistry
from issuecards.tools import FALLBACK_METADATA, tool_modules
from issuecards.tools.context import bind_store, reset_store


class MemoryWriter:
    """Collects bytes written by a transport; stands in for stdout."""

    def __init__(self) -> None:
        self.buffer = bytearray()
        self.drains = 0

    def write(self, data: bytes) -> None:
        self.buffer.extend(data)

    async def drain(self) -> None:
        self.drains += 1

    def lines(self) -> list[str]:
        return [line for line in self.buffer.decode("utf-8").split("\n") if line]

    def messages(self) -> list[dict[str, Any]]:
        return [json.loads(line) for line in self.lines()]


@pytest.fixture
def store(tmp_path: Path) -> Iterator[IssueStore]:
    bound = bind_store(tmp_path / ".issues")
    bound.init()
    yield bound
    reset_store()


@pytest.fixture
def seeded_store(store: IssueStore) -> IssueStore:
    store.create_issue("Fix login bug", ["Reproduce the bug", "Write a failing test"], problem="Login fails")
    store.create_issue("Add dark mode", ["Pick colours"])
    return store


@pytest.fixture
def registry(store: IssueStore) -> ToolRegistry:
    return ToolRegistry(tool_modules(), fallback=FALLBACK_METADATA)


@pytest.fixture
def writer() -> MemoryWriter:
    return MemoryWriter()
