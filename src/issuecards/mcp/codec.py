"""Message codec — newline-delimited JSON-RPC 2.0 envelopes.

:func:`decode` turns one input line into an envelope (or a batch of them);
:func:`encode` turns an envelope back into a single line of text.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from issuecards.mcp.errors import InvalidRequestError, ParseError
from issuecards.mcp.models import (
    JSONRPC_VERSION,
    Envelope,
    JsonRpcErrorResponse,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
)

logger = logging.getLogger(__name__)

Batch = list[Envelope | InvalidRequestError]

# Best-effort id recovery from a line that failed to parse.
_ID_PATTERN = re.compile(r'"id"\s*:\s*(-?\d+|"(?:[^"\\]|\\.)*")')


def decode(line: str | bytes) -> Envelope | Batch:
    """Decode one line into an envelope or a batch.

    Raises:
        ParseError: The line is not valid JSON.
        InvalidRequestError: The value is not a JSON-RPC 2.0 envelope, or is
            an empty batch.

    Invalid members of a non-empty batch do not abort the batch; they are
    returned in place as :class:`InvalidRequestError` instances.
    """
    try:
        raw: Any = json.loads(line)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ParseError({"details": str(exc)}, request_id=recover_id(line)) from exc

    if isinstance(raw, list):
        if not raw:
            raise InvalidRequestError({"details": "Empty batch request"}, answerable=True)
        return [_decode_member(item) for item in raw]
    return decode_object(raw)


def decode_object(raw: Any) -> Envelope:
    """Classify an already-parsed JSON value as a JSON-RPC envelope."""
    if not isinstance(raw, dict):
        raise InvalidRequestError({"details": "Message must be a JSON object"})

    has_id = "id" in raw
    msg_id = raw.get("id")
    reply_id = msg_id if _is_valid_id(msg_id) else None

    if raw.get("jsonrpc") != JSONRPC_VERSION:
        raise InvalidRequestError(
            {"details": "Invalid or missing jsonrpc version"},
            request_id=reply_id,
            answerable=has_id,
        )

    try:
        if "method" in raw:
            if not isinstance(raw["method"], str) or not raw["method"]:
                raise InvalidRequestError(
                    {"details": "method must be a non-empty string"},
                    request_id=reply_id,
                    answerable=has_id,
                )
            if has_id:
                if reply_id is None:
                    raise InvalidRequestError(
                        {"details": "id must be a string or an integer"}, answerable=True
                    )
                return JsonRpcRequest.model_validate(raw)
            return JsonRpcNotification.model_validate(raw)

        if has_id and ("result" in raw) != ("error" in raw):
            if msg_id is not None and reply_id is None:
                raise InvalidRequestError({"details": "id must be a string or an integer"})
            if "error" in raw:
                return JsonRpcErrorResponse.model_validate(raw)
            return JsonRpcResponse.model_validate(raw)
    except ValidationError as exc:
        raise InvalidRequestError(
            {"details": _summarize(exc)},
            request_id=reply_id,
            answerable=has_id,
        ) from exc

    if has_id and "result" in raw and "error" in raw:
        details = "Response must not carry both result and error"
    else:
        details = "Message is neither a request, a notification nor a response"
    raise InvalidRequestError({"details": details}, request_id=reply_id, answerable=has_id)


def encode(envelope: Envelope | list[Envelope]) -> str | None:
    """Serialise an envelope (or a list of them) into one newline-terminated line.

    Serialisation failures are logged and reported as ``None``; they never
    propagate to the caller.
    """
    try:
        if isinstance(envelope, list):
            payload: Any = [e.to_wire() for e in envelope]
        else:
            payload = envelope.to_wire()
        return dumps_compact(payload) + "\n"
    except (TypeError, ValueError) as exc:
        logger.error("Error encoding JSON-RPC message: %s", exc)
        return None


def dumps_compact(value: Any) -> str:
    """Compact JSON with no insignificant whitespace (and so no newlines)."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def recover_id(line: str | bytes) -> int | str | None:
    """Try to salvage a request id from text that is not valid JSON."""
    text = line.decode("utf-8", errors="replace") if isinstance(line, bytes) else line
    match = _ID_PATTERN.search(text)
    if match is None:
        return None
    token = match.group(1)
    if token.startswith('"'):
        try:
            return json.loads(token)  # type: ignore[no-any-return]
        except ValueError:
            return None
    return int(token)


def error_response(exc: InvalidRequestError | ParseError) -> JsonRpcErrorResponse:
    """Build the error reply for a decode failure."""
    return JsonRpcErrorResponse(id=exc.request_id, error=exc.to_error())


def _decode_member(item: Any) -> Envelope | InvalidRequestError:
    try:
        return decode_object(item)
    except InvalidRequestError as exc:
        return exc


def _is_valid_id(value: Any) -> bool:
    return isinstance(value, str) or (isinstance(value, int) and not isinstance(value, bool))


def _summarize(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)
