"""PendingRequests — correlates our outbound requests with the peer's responses."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from issuecards.mcp.errors import RemoteError, RequestTimeoutError
from issuecards.mcp.models import JsonRpcErrorResponse, JsonRpcResponse

logger = logging.getLogger(__name__)


class PendingRequests:
    """Table of in-flight outbound requests keyed by locally allocated ids.

    Ids come from a counter starting at 1. An entry lives until a response
    with the same id arrives, its deadline passes, or the table is cleared.
    Only touched from the event loop thread, so no locking is needed.
    """

    def __init__(self) -> None:
        self._next_id = 1
        self._pending: dict[int, asyncio.Future[Any]] = {}
        self._methods: dict[int, str] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._pending

    def register(self, method: str, timeout: float | None = None) -> tuple[int, asyncio.Future[Any]]:
        """Allocate the next id and a future that settles with the response.

        With a *timeout*, the entry is dropped and the future fails with
        :class:`RequestTimeoutError` once the deadline passes.
        """
        loop = asyncio.get_running_loop()
        request_id = self._next_id
        self._next_id += 1

        future: asyncio.Future[Any] = loop.create_future()
        self._pending[request_id] = future
        self._methods[request_id] = method

        if timeout is not None:
            handle = loop.call_later(timeout, self._expire, request_id, timeout)
            future.add_done_callback(lambda _: handle.cancel())
        return request_id, future

    def resolve(self, response: JsonRpcResponse | JsonRpcErrorResponse) -> bool:
        """Settle the pending entry matching *response*.

        Returns ``False`` (and logs) when no request with that id is pending.
        """
        request_id = response.id
        future = self._pending.pop(request_id, None) if isinstance(request_id, int) else None
        if future is None:
            logger.error("Received response for unknown request ID: %s", request_id)
            return False
        method = self._methods.pop(request_id, "?")  # type: ignore[arg-type]

        if future.done():
            return True
        if isinstance(response, JsonRpcErrorResponse):
            logger.debug("Received error response for %s (%s): %s", request_id, method, response.error.message)
            future.set_exception(RemoteError(response.error))
        else:
            logger.debug("Received success response for %s (%s)", request_id, method)
            future.set_result(response.result)
        return True

    def cancel_all(self) -> None:
        """Cancel every outstanding future and empty the table."""
        for future in self._pending.values():
            if not future.done():
                future.cancel()
        self._pending.clear()
        self._methods.clear()

    def _expire(self, request_id: int, timeout: float) -> None:
        future = self._pending.pop(request_id, None)
        method = self._methods.pop(request_id, "?")
        if future is not None and not future.done():
            logger.warning("Request %s (%s) timed out after %ss", request_id, method, timeout)
            future.set_exception(RequestTimeoutError(method, request_id, timeout))
