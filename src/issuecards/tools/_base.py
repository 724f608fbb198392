"""The ``@mcp_tool`` decorator shared by every tool module."""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from issuecards.issues.errors import IssueNotFoundError, IssueStoreError
from issuecards.mcp.registry import TOOL_PREFIX, TOOL_SPEC_ATTR, ToolSpec
from issuecards.tools.results import not_found_error, operation_error, validation_error

logger = logging.getLogger(__name__)

ISSUE_NUMBER_PATTERN = r"^\d{4}$"


class ToolArgs(BaseModel):
    """Base for tool argument models: camelCase aliases on the wire, no extras."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)


def mcp_tool(
    name: str,
    args_model: type[BaseModel] | None = None,
    *,
    description: str | None = None,
    operation: str | None = None,
) -> Callable[[Callable[..., Awaitable[Any]]], Callable[[dict[str, Any]], Awaitable[Any]]]:
    """Declare an async function as the MCP tool *name*.

    The wrapped function receives the validated *args_model* instance (or the
    raw argument dict when there is no model). Invalid arguments produce an
    in-band ``ValidationError`` result; issue store failures produce
    ``NotFoundError`` or ``<Operation>Error`` results. Anything else
    propagates to the caller.

    Example::

        @mcp_tool("mcp__showIssue", ShowIssueArgs)
        async def show_issue(args: ShowIssueArgs) -> dict:
            ...
    """
    op = operation or name.removeprefix(TOOL_PREFIX)

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[[dict[str, Any]], Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(args: dict[str, Any]) -> Any:
            if args_model is not None:
                try:
                    parsed: Any = args_model.model_validate(args or {})
                except ValidationError as exc:
                    return validation_error("Invalid arguments", errors=_format_errors(exc))
            else:
                parsed = dict(args or {})

            try:
                return await func(parsed)
            except IssueNotFoundError as exc:
                return not_found_error("Issue", exc.number)
            except IssueStoreError as exc:
                logger.debug("Tool %s failed: %s", name, exc)
                return operation_error(op, f"Failed to {op}: {exc}")

        setattr(wrapper, TOOL_SPEC_ATTR, ToolSpec(name=name, args_model=args_model, description=description))
        return wrapper

    return decorator


def _format_errors(exc: ValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        messages.append(f"{location} {error['msg']}" if location else error["msg"])
    return messages
