"""MCP runtime adapter: FastMCP or a minimal line-delimited JSON-RPC loop."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TextIO, cast

from fastmcp import FastMCP
from fastmcp.tools import FunctionTool
from fastmcp.tools.tool import ToolResult as FastToolResult
from mcp.types import TextContent
from pydantic import BaseModel

from legitify_mcp.utils.serialization import json_default

logger = logging.getLogger(__name__)

RUNTIME_FASTMCP = "fastmcp"
RUNTIME_SIMPLE = "simple"


@dataclass
class ToolSpec:
    name: str
    description: str
    input_schema: dict[str, object]
    handler: Callable[[dict[str, object]], "ToolResult | Awaitable[ToolResult]"]


class ToolResult(BaseModel):
    content: list[dict[str, object]]
    structured_content: dict[str, object] | None = None


class _SimpleMCPServer:
    """Reads one JSON-RPC request per stdin line and answers on stdout."""

    def __init__(self, name: str, version: str, instructions: str) -> None:
        self._name = name
        self._version = version
        self._instructions = instructions
        self._tools: dict[str, ToolSpec] = {}

    @property
    def tools(self) -> dict[str, ToolSpec]:
        return dict(self._tools)

    def add_tool(self, tool: ToolSpec) -> None:
        self._tools[tool.name] = tool

    def run(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        source = stdin or sys.stdin
        sink = stdout or sys.stdout
        loop = asyncio.new_event_loop()
        try:
            for line in source:
                line = line.strip()
                if not line:
                    continue
                try:
                    request = json.loads(line)
                except json.JSONDecodeError:
                    self._write_error(sink, None, "Invalid JSON")
                    continue
                if not isinstance(request, dict):
                    self._write_error(sink, None, "Invalid JSON-RPC request")
                    continue
                response = self._dispatch(request, loop)
                if response is not None:
                    self._write(sink, response)
        finally:
            loop.close()

    def _dispatch(self, request: dict[str, object], loop: Any) -> dict[str, object] | None:
        request_id = request.get("id")
        method = request.get("method")
        raw_params = request.get("params", {})
        params = raw_params if isinstance(raw_params, dict) else {}

        if request_id is None:
            # Notifications (e.g. notifications/initialized) get no reply.
            return None

        if method == "initialize":
            return _result(
                request_id,
                {
                    "serverInfo": {"name": self._name, "version": self._version},
                    "instructions": self._instructions,
                    "capabilities": {"tools": {}},
                },
            )
        if method == "ping":
            return _result(request_id, {})
        if method == "tools/list":
            tools = [
                {
                    "name": tool.name,
                    "description": tool.description,
                    "inputSchema": tool.input_schema,
                }
                for tool in self._tools.values()
            ]
            return _result(request_id, {"tools": tools})
        if method == "tools/call":
            raw_name = params.get("name")
            if not isinstance(raw_name, str):
                return _error(request_id, "Invalid tool name")
            raw_arguments = params.get("arguments", {})
            arguments = raw_arguments if isinstance(raw_arguments, dict) else {}
            tool = self._tools.get(raw_name)
            if tool is None:
                return _error(request_id, f"Unknown tool: {raw_name}")
            try:
                raw_result = tool.handler(arguments)
                if _is_awaitable(raw_result):
                    tool_result = loop.run_until_complete(cast(Awaitable[ToolResult], raw_result))
                else:
                    tool_result = cast(ToolResult, raw_result)
                if not isinstance(tool_result, ToolResult):
                    raise TypeError("Tool handler did not return ToolResult")
            except (KeyboardInterrupt, SystemExit):
                raise
            except Exception as exc:
                logger.exception("Tool execution error in %s: %s", raw_name, exc)
                return _error(request_id, "Internal tool error")
            return _result(
                request_id,
                {
                    "content": tool_result.content,
                    "structuredContent": tool_result.structured_content,
                },
            )

        method_name = method if isinstance(method, str) else repr(method)
        return _error(request_id, f"Unsupported method: {method_name[:256]}")

    def _write(self, sink: TextIO, payload: dict[str, object]) -> None:
        sink.write(json.dumps(payload, default=json_default) + "\n")
        sink.flush()

    def _write_error(self, sink: TextIO, request_id: object, message: str) -> None:
        self._write(sink, _error(request_id, message))


def _result(request_id: object, result: dict[str, object]) -> dict[str, object]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def _error(request_id: object, message: str) -> dict[str, object]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {"code": -32000, "message": message},
    }


class MCPServer:
    """Front for the selected runtime; ``fastmcp`` unless ``simple`` is configured."""

    def __init__(
        self,
        name: str,
        version: str,
        instructions: str,
        runtime: str = RUNTIME_FASTMCP,
    ) -> None:
        self._server: Any
        if runtime == RUNTIME_FASTMCP:
            self._server = FastMCP(name=name, version=version, instructions=instructions)
        elif runtime == RUNTIME_SIMPLE:
            self._server = _SimpleMCPServer(name=name, version=version, instructions=instructions)
        else:
            raise ValueError(f"Unsupported MCP runtime: {runtime}")
        self._mode = runtime

    @property
    def mode(self) -> str:
        return self._mode

    def add_tool(self, tool: ToolSpec) -> None:
        if self._mode == RUNTIME_FASTMCP:
            self._add_fastmcp_tool(tool)
        else:
            self._server.add_tool(tool)

    def run(self) -> None:
        self._server.run()

    def _add_fastmcp_tool(self, tool: ToolSpec) -> None:
        # FastMCP discovers parameters from the handler signature, so give the
        # generic **kwargs handler one built from the tool's schema.
        raw_properties = tool.input_schema.get("properties", {})
        properties = raw_properties if isinstance(raw_properties, dict) else {}
        prop_names = [name for name in properties.keys() if isinstance(name, str)]

        async def _handler(**kwargs: object) -> object:
            filtered = {k: v for k, v in kwargs.items() if v is not None}
            # Handlers block on file locks; keep them off the event loop.
            raw_result = await asyncio.to_thread(tool.handler, filtered)
            if _is_awaitable(raw_result):
                result = await cast(Awaitable[ToolResult], raw_result)
            else:
                result = cast(ToolResult, raw_result)
            if not isinstance(result, ToolResult):
                raise TypeError("Tool handler did not return ToolResult")
            return FastToolResult(
                content=[
                    TextContent(type="text", text=str(item.get("text", "")))
                    for item in result.content
                ],
                structured_content=result.structured_content,
            )

        params = [
            inspect.Parameter(name, inspect.Parameter.KEYWORD_ONLY, default=None, annotation=object)
            for name in prop_names
        ]
        _handler.__signature__ = inspect.Signature(params)  # type: ignore[attr-defined]
        safe_name = tool.name.replace("-", "_").replace(".", "_")
        _handler.__name__ = f"_handler_{safe_name}"

        fast_tool = FunctionTool.from_function(
            _handler,
            name=tool.name,
            description=tool.description,
        )
        fields = getattr(fast_tool.__class__, "model_fields", None)
        if isinstance(fields, dict) and "parameters" in fields:
            fast_tool = fast_tool.model_copy(update={"parameters": tool.input_schema})
        self._server.add_tool(fast_tool)


def _is_awaitable(value: object) -> bool:
    try:
        return inspect.isawaitable(value)
    except TypeError:
        return False
