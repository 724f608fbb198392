"""Pydantic models for issues and their task lists."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

IssueState = Literal["open", "closed"]


class Task(BaseModel):
    """One ``- [ ]`` / ``- [x]`` item from an issue's Tasks section."""

    index: int
    text: str
    completed: bool = False


class Issue(BaseModel):
    """A single issue file."""

    number: str
    title: str
    state: IssueState = "open"
    content: str = ""
