from __future__ import annotations

import json
import threading
from io import StringIO
from unittest.mock import patch

import pytest

from legitify_mcp.mcp_runtime import (
    MCPServer,
    ToolResult,
    ToolSpec,
    _is_awaitable,
    _SimpleMCPServer,
)


def _run(server: _SimpleMCPServer, *messages: object) -> list[dict]:
    stdin = StringIO("".join(json.dumps(m) + "\n" for m in messages))
    stdout = StringIO()
    server.run(stdin=stdin, stdout=stdout)
    return [json.loads(line) for line in stdout.getvalue().splitlines()]


def _echo_tool(name: str = "t1") -> ToolSpec:
    return ToolSpec(
        name,
        "desc",
        {"type": "object", "properties": {}},
        lambda args: ToolResult(content=[{"type": "text", "text": "ok"}], structured_content=args),
    )


def test_simple_server_initialize() -> None:
    [msg] = _run(
        _SimpleMCPServer("test", "1.0", "inst"),
        {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}},
    )
    assert msg["id"] == 1
    assert msg["result"]["serverInfo"] == {"name": "test", "version": "1.0"}
    assert msg["result"]["instructions"] == "inst"


def test_simple_server_tools_list() -> None:
    server = _SimpleMCPServer("test", "1.0", "inst")
    server.add_tool(_echo_tool())
    [msg] = _run(server, {"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
    assert [tool["name"] for tool in msg["result"]["tools"]] == ["t1"]


def test_simple_server_tools_call() -> None:
    server = _SimpleMCPServer("test", "1.0", "inst")
    server.add_tool(_echo_tool())
    [msg] = _run(
        server,
        {
            "jsonrpc": "2.0",
            "id": 3,
            "method": "tools/call",
            "params": {"name": "t1", "arguments": {"a": 1}},
        },
    )
    assert msg["result"]["structuredContent"] == {"a": 1}
    assert msg["result"]["content"][0]["text"] == "ok"


def test_simple_server_async_tool() -> None:
    async def handler(args: dict[str, object]) -> ToolResult:
        return ToolResult(content=[{"type": "text", "text": "async"}])

    server = _SimpleMCPServer("test", "1.0", "inst")
    server.add_tool(ToolSpec("a1", "desc", {}, handler))
    [msg] = _run(
        server,
        {"jsonrpc": "2.0", "id": 4, "method": "tools/call", "params": {"name": "a1"}},
    )
    assert msg["result"]["content"][0]["text"] == "async"


def test_simple_server_errors() -> None:
    def broken(args: dict[str, object]) -> ToolResult:
        raise OSError("disk gone")

    server = _SimpleMCPServer("test", "1.0", "inst")
    server.add_tool(ToolSpec("broken", "desc", {}, broken))
    stdin = StringIO(
        "{not json\n"
        + json.dumps({"jsonrpc": "2.0", "id": 5, "method": "tools/call", "params": {"name": "nope"}})
        + "\n"
        + json.dumps({"jsonrpc": "2.0", "id": 6, "method": "tools/call", "params": {"name": "broken"}})
        + "\n"
        + json.dumps({"jsonrpc": "2.0", "id": 7, "method": "resources/list"})
        + "\n"
    )
    stdout = StringIO()
    server.run(stdin=stdin, stdout=stdout)
    messages = [json.loads(line) for line in stdout.getvalue().splitlines()]

    assert messages[0]["error"]["message"] == "Invalid JSON"
    assert messages[1]["error"]["message"] == "Unknown tool: nope"
    assert messages[2]["error"]["message"] == "Internal tool error"
    assert messages[3]["error"]["message"].startswith("Unsupported method")


def test_simple_server_ignores_notifications() -> None:
    messages = _run(
        _SimpleMCPServer("test", "1.0", "inst"),
        {"jsonrpc": "2.0", "method": "notifications/initialized"},
        {"jsonrpc": "2.0", "id": 8, "method": "ping"},
    )
    assert messages == [{"jsonrpc": "2.0", "id": 8, "result": {}}]


def test_mcp_server_simple_mode_delegates() -> None:
    server = MCPServer("test", "1.0", "inst", runtime="simple")
    server.add_tool(_echo_tool("x"))
    assert server.mode == "simple"
    assert list(server._server.tools) == ["x"]


def test_mcp_server_rejects_unknown_runtime() -> None:
    with pytest.raises(ValueError, match="Unsupported MCP runtime"):
        MCPServer("test", "1.0", "inst", runtime="grpc")


def test_is_awaitable() -> None:
    async def coro() -> None:
        return None

    pending = coro()
    assert _is_awaitable(pending) is True
    pending.close()
    assert _is_awaitable("nope") is False


@pytest.mark.asyncio
async def test_fastmcp_handler_runs_tool_off_event_loop() -> None:
    seen: dict[str, object] = {}

    def handler(args: dict[str, object]) -> ToolResult:
        seen["thread"] = threading.get_ident()
        seen["args"] = args
        return ToolResult(content=[{"type": "text", "text": "ok"}], structured_content={"ok": True})

    schema = {"type": "object", "properties": {"a": {"type": "string"}, "b": {"type": "string"}}}
    with (
        patch("legitify_mcp.mcp_runtime.FastMCP"),
        patch("legitify_mcp.mcp_runtime.FunctionTool") as tool_cls,
    ):
        server = MCPServer("test", "1.0", "inst")
        server.add_tool(ToolSpec("legitify.x", "desc", schema, handler))

    wrapped = tool_cls.from_function.call_args.args[0]
    result = await wrapped(a="v", b=None)

    assert seen["thread"] != threading.get_ident()
    assert seen["args"] == {"a": "v"}
    assert result.structured_content == {"ok": True}
    assert result.content[0].text == "ok"
