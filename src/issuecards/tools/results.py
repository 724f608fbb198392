"""In-band result shapes returned by tool implementations.

Tools report application failures as ``{"success": false, "error": {...}}``
inside a normal JSON-RPC result rather than as protocol errors.
"""

from __future__ import annotations

from typing import Any


def success(data: Any = None) -> dict[str, Any]:
    return {"success": True, "data": data}


def create_error_response(error_type: str, message: str, **details: Any) -> dict[str, Any]:
    return {"success": False, "error": {"type": error_type, "message": message, **details}}


def validation_error(message: str, **details: Any) -> dict[str, Any]:
    return create_error_response("ValidationError", message, **details)


def not_found_error(entity: str, identifier: str | None = None) -> dict[str, Any]:
    """``NotFoundError`` result, e.g. ``Issue #0007 not found``."""
    message = f"{entity} #{identifier} not found" if identifier else f"{entity} not found"
    return create_error_response("NotFoundError", message)


def operation_error(operation: str, message: str) -> dict[str, Any]:
    """``<Operation>Error`` result; ``addTask`` becomes ``AddTaskError``."""
    return create_error_response(f"{operation[:1].upper()}{operation[1:]}Error", message)
