"""ToolRegistry — the name → tool index served by ``tools/list`` and ``tools/call``.

Tools are discovered by scanning *sources* (modules or mappings) for callables
that carry a :class:`ToolSpec`. Descriptions come from the ToolSpec or the
callable's docstring; parameters come from its pydantic args model.
A static fallback table fills in tools that declare neither.

Usage::

    registry = ToolRegistry([issuecards.tools.issues], fallback=FALLBACK_METADATA)
    registry.get("mcp__listIssues")
    registry.refresh()   # rebuild from the same sources
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from types import ModuleType
from typing import Any

from pydantic import BaseModel

from issuecards.mcp.errors import ToolNotFoundError, ToolRegistrationError
from issuecards.mcp.models import ToolDescriptor, ToolParameter

logger = logging.getLogger(__name__)

ToolImplementation = Callable[[dict[str, Any]], Awaitable[Any]]

TOOL_PREFIX = "mcp__"
TOOL_SPEC_ATTR = "__mcp_tool__"
DEFAULT_DESCRIPTION = "No description available"


@dataclass(frozen=True)
class ToolSpec:
    """Static declaration attached to a tool implementation."""

    name: str
    args_model: type[BaseModel] | None = None
    description: str | None = None


@dataclass(frozen=True)
class FallbackMetadata:
    """Description and parameters for tools that do not declare their own."""

    description: str
    parameters: tuple[ToolParameter, ...] = ()


class ToolRegistry:
    """Read-only index of tools, rebuilt on demand from its sources."""

    def __init__(
        self,
        sources: Iterable[ModuleType | Mapping[str, Any]] = (),
        *,
        fallback: Mapping[str, FallbackMetadata] | None = None,
    ) -> None:
        self._sources = list(sources)
        self._fallback = dict(fallback or {})
        self._descriptors: dict[str, ToolDescriptor] = {}
        self._implementations: dict[str, ToolImplementation] = {}
        if self._sources:
            self.refresh()

    def refresh(self) -> list[ToolDescriptor]:
        """Rebuild the index from the sources, replacing every prior entry."""
        descriptors: dict[str, ToolDescriptor] = {}
        implementations: dict[str, ToolImplementation] = {}
        seen: dict[str, object] = {}

        for source in self._sources:
            for attr, candidate in _members(source):
                spec = getattr(candidate, TOOL_SPEC_ATTR, None)
                if not isinstance(spec, ToolSpec) or not callable(candidate):
                    continue
                if not spec.name.startswith(TOOL_PREFIX):
                    logger.debug("Skipping %s: %s is not an MCP tool name", attr, spec.name)
                    continue
                if spec.name in seen:
                    if seen[spec.name] is candidate:
                        continue
                    msg = f"Duplicate tool name: {spec.name}"
                    raise ToolRegistrationError(msg)
                seen[spec.name] = candidate
                descriptors[spec.name] = self._describe(spec, candidate)
                implementations[spec.name] = candidate

        self._descriptors = descriptors
        self._implementations = implementations
        logger.debug("Registered %d tools", len(descriptors))
        return self.list()

    def add(
        self,
        descriptor: ToolDescriptor,
        implementation: ToolImplementation | None = None,
    ) -> None:
        """Register a single descriptor, optionally with its implementation."""
        if descriptor.name in self._descriptors:
            msg = f"Duplicate tool name: {descriptor.name}"
            raise ToolRegistrationError(msg)
        self._descriptors[descriptor.name] = descriptor
        if implementation is not None:
            self._implementations[descriptor.name] = implementation

    def list(self) -> list[ToolDescriptor]:
        """All descriptors, in registration order."""
        return list(self._descriptors.values())

    def get(self, name: str) -> ToolDescriptor:
        """Look up a descriptor by exact name.

        Raises:
            ToolNotFoundError: No tool is registered under *name*.
        """
        try:
            return self._descriptors[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def implementation(self, name: str) -> ToolImplementation | None:
        """The callable behind *name*, or ``None`` if it cannot be resolved."""
        return self._implementations.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    def _describe(self, spec: ToolSpec, func: Callable[..., Any]) -> ToolDescriptor:
        fallback = self._fallback.get(spec.name)
        description = spec.description or _first_paragraph(inspect.getdoc(func))
        if not description and fallback is not None:
            description = fallback.description

        if spec.args_model is not None:
            parameters = describe_parameters(spec.args_model)
        elif fallback is not None:
            parameters = fallback.parameters
        else:
            parameters = ()

        return ToolDescriptor(
            name=spec.name,
            description=description or DEFAULT_DESCRIPTION,
            parameters=parameters,
        )


def describe_parameters(model: type[BaseModel]) -> tuple[ToolParameter, ...]:
    """Derive the ordered parameter list from a pydantic args model."""
    schema = model.model_json_schema(by_alias=True)
    required = set(schema.get("required", []))
    return tuple(
        ToolParameter(
            name=name,
            type=_json_type(prop),
            description=prop.get("description", ""),
            required=name in required,
        )
        for name, prop in schema.get("properties", {}).items()
    )


def _json_type(prop: dict[str, Any]) -> str:
    if isinstance(prop.get("type"), str):
        return str(prop["type"])
    for option in prop.get("anyOf", []):
        kind = option.get("type")
        if isinstance(kind, str) and kind != "null":
            return kind
    return "string"


def _first_paragraph(doc: str | None) -> str:
    if not doc:
        return ""
    return " ".join(doc.strip().split("\n\n", 1)[0].split())


def _members(source: ModuleType | Mapping[str, Any]) -> Iterable[tuple[str, Any]]:
    if isinstance(source, ModuleType):
        return list(vars(source).items())
    return list(source.items())
