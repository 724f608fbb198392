"""Task-list and section editing for issue markdown.

Tasks are the ``- [ ]`` / ``- [x]`` items under the ``## Tasks`` heading.
All functions are pure: they take markdown text and return new text.
"""

from __future__ import annotations

import re

from issuecards.issues.errors import TaskNotFoundError
from issuecards.issues.models import Task

TASKS_SECTION = "Tasks"

_HEADING = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")
_TASK = re.compile(r"^\s*[-*]\s+\[( |x|X)\]\s+(.*)$")


def extract_tasks(content: str) -> list[Task]:
    """All task items in the Tasks section, in document order."""
    tasks: list[Task] = []
    for _, match in _task_lines(content.split("\n")):
        tasks.append(Task(index=len(tasks), text=match.group(2).strip(), completed=match.group(1) != " "))
    return tasks


def find_current_task(tasks: list[Task]) -> Task | None:
    """The first task not yet completed."""
    return next((t for t in tasks if not t.completed), None)


def update_task_status(content: str, index: int, completed: bool) -> str:
    """Check or uncheck the task at *index*.

    Raises:
        TaskNotFoundError: *index* is out of range.
    """
    lines = content.split("\n")
    for position, (line_no, _) in enumerate(_task_lines(lines)):
        if position == index:
            marker = "[x]" if completed else "[ ]"
            lines[line_no] = re.sub(r"\[( |x|X)\]", marker, lines[line_no], count=1)
            return "\n".join(lines)
    raise TaskNotFoundError("Task index out of bounds")


def add_task(content: str, text: str) -> tuple[str, Task]:
    """Append an unchecked task to the Tasks section, creating it if missing."""
    lines = content.split("\n")
    existing = list(_task_lines(lines))
    new_line = f"- [ ] {text}"

    if existing:
        insert_at = existing[-1][0] + 1
    else:
        bounds = _section_bounds(lines, TASKS_SECTION)
        if bounds is None:
            lines = _trim_trailing(lines) + ["", f"## {TASKS_SECTION}"]
            insert_at = len(lines)
        else:
            start, insert_at = bounds
            while insert_at > start + 1 and not lines[insert_at - 1].strip():
                insert_at -= 1

    lines.insert(insert_at, new_line)
    text_out = "\n".join(lines)
    if not text_out.endswith("\n"):
        text_out += "\n"
    return text_out, Task(index=len(existing), text=text, completed=False)


def add_note(content: str, section: str, note: str) -> str:
    """Append *note* as a paragraph at the end of the ``## section`` block."""
    lines = content.split("\n")
    bounds = _section_bounds(lines, section)
    if bounds is None:
        lines = _trim_trailing(lines) + ["", f"## {section}", note, ""]
        return "\n".join(lines)

    start, end = bounds
    body_end = end
    while body_end > start + 1 and not lines[body_end - 1].strip():
        body_end -= 1
    lines[body_end:body_end] = ["", note] if body_end > start + 1 else [note]
    return "\n".join(lines)


def section_names(content: str) -> list[str]:
    """Titles of every level-2 heading."""
    names = []
    for line in content.split("\n"):
        match = _HEADING.match(line)
        if match and len(match.group(1)) == 2:
            names.append(match.group(2))
    return names


def _task_lines(lines: list[str]) -> list[tuple[int, re.Match[str]]]:
    bounds = _section_bounds(lines, TASKS_SECTION)
    if bounds is None:
        return []
    found = []
    for line_no in range(bounds[0] + 1, bounds[1]):
        match = _TASK.match(lines[line_no])
        if match:
            found.append((line_no, match))
    return found


def _section_bounds(lines: list[str], title: str) -> tuple[int, int] | None:
    """``(heading_line, end_exclusive)`` of a level-2 section, matched case-insensitively."""
    start = None
    for line_no, line in enumerate(lines):
        match = _HEADING.match(line)
        if not match:
            continue
        if start is not None and len(match.group(1)) <= 2:
            return start, line_no
        if start is None and len(match.group(1)) == 2 and match.group(2).lower() == title.lower():
            start = line_no
    if start is None:
        return None
    return start, len(lines)


def _trim_trailing(lines: list[str]) -> list[str]:
    trimmed = list(lines)
    while trimmed and not trimmed[-1].strip():
        trimmed.pop()
    return trimmed
