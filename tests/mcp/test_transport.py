"""Tests for StdioTransport, driven in-process through an asyncio.StreamReader."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from issuecards.config import ServerSettings
from issuecards.mcp.errors import RequestTimeoutError
from issuecards.mcp.lifecycle import ConnectionState
from issuecards.mcp.models import ToolDescriptor
from issuecards.mcp.registry import ToolRegistry
from issuecards.mcp.session_log import ProtocolLog
from issuecards.mcp.transport import StdioTransport


def _reader(*lines: str, eof: bool = True) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    for line in lines:
        reader.feed_data((line + "\n").encode())
    if eof:
        reader.feed_eof()
    return reader


async def _wait_for_lines(writer: Any, count: int) -> None:
    for _ in range(200):
        if len(writer.lines()) >= count:
            return
        await asyncio.sleep(0.005)
    raise AssertionError(f"expected {count} lines, got {writer.lines()}")


def _responses(writer: Any) -> dict[Any, dict[str, Any]]:
    return {m["id"]: m for m in writer.messages() if "id" in m}


class TestServe:
    async def test_announces_server_info_first(self, registry: ToolRegistry, writer: Any) -> None:
        transport = StdioTransport(registry, reader=_reader(), writer=writer)
        await transport.serve()
        first = writer.messages()[0]
        assert first["method"] == "server/info"
        assert "id" not in first
        assert any(t["name"] == "mcp__listIssues" for t in first["params"]["capabilities"]["tools"])

    async def test_tools_call_round_trip(self, registry: ToolRegistry, writer: Any) -> None:
        line = (
            '{"jsonrpc":"2.0","id":1,"method":"tools/call",'
            '"params":{"name":"mcp__listIssues","arguments":{"state":"open"}}}'
        )
        transport = StdioTransport(registry, reader=_reader(line), writer=writer)
        await transport.serve()
        assert writer.lines()[-1] == (
            '{"jsonrpc":"2.0","id":1,"result":{"success":true,"data":[],'
            '"content":["{\\"success\\":true,\\"data\\":[]}"]}}'
        )

    async def test_recovers_after_garbage(self, registry: ToolRegistry, writer: Any) -> None:
        reader = _reader("not json at all", '{"jsonrpc":"2.0","id":5,"method":"server/info"}')
        transport = StdioTransport(registry, reader=reader, writer=writer)
        await transport.serve()
        responses = _responses(writer)
        assert list(responses) == [5]
        assert "result" in responses[5]

    async def test_empty_batch(self, registry: ToolRegistry, writer: Any) -> None:
        transport = StdioTransport(registry, reader=_reader("[]"), writer=writer)
        await transport.serve()
        reply = writer.messages()[-1]
        assert reply["id"] is None
        assert reply["error"]["code"] == -32600

    async def test_every_request_answered_once(self, registry: ToolRegistry, writer: Any) -> None:
        lines = [json.dumps({"jsonrpc": "2.0", "id": i, "method": "tools/list"}) for i in range(1, 6)]
        lines.append('{"jsonrpc":"2.0","method":"notifications/initialized"}')
        transport = StdioTransport(registry, reader=_reader(*lines), writer=writer)
        await transport.serve()
        ids = [m["id"] for m in writer.messages() if "id" in m]
        assert sorted(ids) == [1, 2, 3, 4, 5]

    async def test_unencodable_result_still_answered(self, registry: ToolRegistry, writer: Any) -> None:
        async def not_a_number(args: dict[str, Any]) -> Any:
            return {"success": True, "data": float("nan")}

        registry.add(ToolDescriptor(name="mcp__nan"), not_a_number)
        line = '{"jsonrpc":"2.0","id":9,"method":"tools/call","params":{"name":"mcp__nan","arguments":{}}}'
        transport = StdioTransport(registry, reader=_reader(line), writer=writer)
        await transport.serve()
        responses = _responses(writer)
        assert list(responses) == [9]
        assert responses[9]["error"] == {
            "code": -32603,
            "message": "Internal error",
            "data": {"message": "Result is not JSON-serializable"},
        }

    async def test_slow_tool_does_not_block_later_lines(self, registry: ToolRegistry, writer: Any) -> None:
        release = asyncio.Event()

        async def slow(args: dict[str, Any]) -> Any:
            await release.wait()
            return {"done": True}

        registry.add(ToolDescriptor(name="mcp__slow"), slow)
        reader = _reader(
            '{"jsonrpc":"2.0","id":1,"method":"tools/call","params":{"name":"mcp__slow"}}',
            '{"jsonrpc":"2.0","id":2,"method":"shutdown"}',
            eof=False,
        )
        transport = StdioTransport(registry, reader=reader, writer=writer)
        await transport.start()
        await _wait_for_lines(writer, 2)
        assert list(_responses(writer)) == [2]

        release.set()
        await _wait_for_lines(writer, 3)
        assert list(_responses(writer)) == [2, 1]
        reader.feed_eof()
        await transport.wait_closed()

    async def test_initialized_before_initialize(self, registry: ToolRegistry, writer: Any) -> None:
        reader = _reader(
            '{"jsonrpc":"2.0","method":"notifications/initialized"}',
            '{"jsonrpc":"2.0","id":1,"method":"initialize","params":{"protocolVersion":"2024-11-05"}}',
            eof=False,
        )
        transport = StdioTransport(registry, reader=reader, writer=writer)
        await transport.start()
        await _wait_for_lines(writer, 2)
        assert transport.state is ConnectionState.INITIALIZED
        reader.feed_eof()
        await transport.wait_closed()
        assert transport.state is ConnectionState.STOPPED


class TestLifecycleHooks:
    async def test_hooks_fire_once(self, registry: ToolRegistry, writer: Any) -> None:
        on_connect = MagicMock()
        on_disconnect = MagicMock()
        transport = StdioTransport(
            registry,
            reader=_reader(),
            writer=writer,
            on_connect=on_connect,
            on_disconnect=on_disconnect,
        )
        await transport.serve()
        await transport.stop()
        on_connect.assert_called_once()
        on_disconnect.assert_called_once()
        assert not transport.is_running

    async def test_start_twice_is_noop(self, registry: ToolRegistry, writer: Any) -> None:
        reader = _reader(eof=False)
        transport = StdioTransport(registry, reader=reader, writer=writer)
        await transport.start()
        await transport.start()
        assert [m.get("method") for m in writer.messages()] == ["server/info"]
        reader.feed_eof()
        await transport.wait_closed()

    async def test_exit_notification_stops(self, registry: ToolRegistry, writer: Any) -> None:
        on_disconnect = MagicMock()
        reader = _reader('{"jsonrpc":"2.0","method":"exit"}', eof=False)
        transport = StdioTransport(registry, reader=reader, writer=writer, on_disconnect=on_disconnect)
        await asyncio.wait_for(transport.serve(), timeout=2)
        assert transport.state is ConnectionState.STOPPED
        on_disconnect.assert_called_once()


class TestOutbound:
    async def test_send_request_resolves(self, registry: ToolRegistry, writer: Any) -> None:
        reader = _reader(eof=False)
        transport = StdioTransport(registry, reader=reader, writer=writer)
        await transport.start()

        future = transport.send_request("roots/list", {"cursor": None})
        await _wait_for_lines(writer, 2)
        request = writer.messages()[-1]
        assert request["method"] == "roots/list"
        assert request["id"] == 1

        reader.feed_data(b'{"jsonrpc":"2.0","id":1,"result":{"roots":[]}}\n')
        assert await asyncio.wait_for(future, timeout=1) == {"roots": []}
        reader.feed_eof()
        await transport.wait_closed()

    async def test_send_request_timeout_from_settings(self, registry: ToolRegistry, writer: Any) -> None:
        reader = _reader(eof=False)
        settings = ServerSettings(request_timeout=0.01, log_protocol=False)
        transport = StdioTransport(registry, settings=settings, reader=reader, writer=writer)
        await transport.start()
        with pytest.raises(RequestTimeoutError):
            await transport.send_request("ping")
        assert len(transport.pending) == 0
        reader.feed_eof()
        await transport.wait_closed()

    async def test_stop_cancels_pending(self, registry: ToolRegistry, writer: Any) -> None:
        transport = StdioTransport(registry, reader=_reader(eof=False), writer=writer)
        await transport.start()
        future = transport.send_request("ping")
        await transport.stop()
        assert future.cancelled()
        await transport.wait_closed()

    async def test_write_failure_is_swallowed(self, registry: ToolRegistry) -> None:
        broken = MagicMock()
        broken.write.side_effect = BrokenPipeError("gone")
        transport = StdioTransport(registry, reader=_reader(), writer=broken)
        await transport.serve()
        assert transport.state is ConnectionState.STOPPED


class TestProtocolLogIntegration:
    async def test_traffic_recorded(self, registry: ToolRegistry, writer: Any, tmp_path: Path) -> None:
        log_path = tmp_path / "session.jsonl"
        reader = _reader('{"jsonrpc":"2.0","id":1,"method":"tools/list"}', "oops")
        transport = StdioTransport(
            registry, reader=reader, writer=writer, protocol_log=ProtocolLog(log_path)
        )
        await transport.serve()

        entries = [json.loads(line) for line in log_path.read_text().splitlines()]
        kinds = [e["type"] for e in entries]
        assert kinds[0] == "meta"
        assert "request" in kinds
        assert "response" in kinds
        assert "error" in kinds
        assert entries[-1]["type"] == "meta"
        assert entries[-1]["event"] == "shutdown"
