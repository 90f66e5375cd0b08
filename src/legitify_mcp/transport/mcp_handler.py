"""JSON-RPC over HTTP for the attestation tools.

One POST carries either a single JSON-RPC message or a batch of them.
Notifications are accepted with ``202`` and no body.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from legitify_mcp import __version__
from legitify_mcp.config import load_settings
from legitify_mcp.mcp_runtime import ToolResult
from legitify_mcp.tools import get_tool_registry
from legitify_mcp.utils.serialization import json_default

logger = logging.getLogger(__name__)

PROTOCOL_VERSIONS = ("2025-03-26", "2025-06-18", "2025-11-25")
MAX_BATCH_SIZE = 50

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
SERVER_ERROR = -32000

Message = dict[str, object]


class RpcError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


async def handle_mcp_request(request: Request) -> Response:
    headers = {"MCP-Protocol-Version": _header_version(request)}

    rejection = _check_origin(request)
    if rejection is not None:
        return JSONResponse({"error": rejection}, status_code=403, headers=headers)
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=headers)
    if request.method != "POST":
        return JSONResponse(
            {"error": "method not allowed"},
            status_code=405,
            headers={**headers, "Allow": "POST, OPTIONS"},
        )

    try:
        incoming = json.loads(await request.body())
    except (UnicodeDecodeError, json.JSONDecodeError):
        return _send(_failure(None, RpcError(PARSE_ERROR, "Invalid JSON")), headers, 400)

    if not isinstance(incoming, list):
        reply = await answer(incoming)
        if reply is None:
            return Response(status_code=202, headers=headers)
        return _send(reply, headers)

    if not incoming or len(incoming) > MAX_BATCH_SIZE:
        error = RpcError(INVALID_REQUEST, f"Batch must hold 1-{MAX_BATCH_SIZE} messages")
        return _send(_failure(None, error), headers, 400)
    replies = [reply for reply in [await answer(item) for item in incoming] if reply is not None]
    if not replies:
        return Response(status_code=202, headers=headers)
    return _send(replies, headers)


async def answer(message: object) -> Message | None:
    """Answer one JSON-RPC message; None for notifications."""
    if not isinstance(message, dict):
        return _failure(None, RpcError(INVALID_REQUEST, "Invalid JSON-RPC request"))
    request_id = message.get("id")
    if request_id is None:
        return None

    method = message.get("method")
    params = message.get("params")
    try:
        if not isinstance(method, str):
            raise RpcError(INVALID_REQUEST, "Invalid JSON-RPC method")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise RpcError(INVALID_PARAMS, "params must be an object")
        handler = _METHODS.get(method)
        if handler is None:
            raise RpcError(METHOD_NOT_FOUND, f"Unsupported method: {method[:256]}")
        result = await handler(params)
    except RpcError as exc:
        return _failure(request_id, exc)
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


async def _initialize(params: Message) -> Message:
    requested = params.get("protocolVersion")
    version = requested if requested in PROTOCOL_VERSIONS else PROTOCOL_VERSIONS[-1]
    return {
        "protocolVersion": version,
        "serverInfo": {"name": "legitify-mcp", "version": __version__},
        "instructions": load_settings().server.instructions,
        "capabilities": {"tools": {"listChanged": False}},
    }


async def _ping(params: Message) -> Message:
    return {}


async def _list_tools(params: Message) -> Message:
    return {
        "tools": [
            {"name": spec.name, "description": spec.description, "inputSchema": spec.input_schema}
            for spec in get_tool_registry().values()
        ]
    }


async def _call_tool(params: Message) -> Message:
    name = params.get("name")
    if not isinstance(name, str):
        raise RpcError(INVALID_PARAMS, "Invalid tool name")
    arguments = params.get("arguments") or {}
    if not isinstance(arguments, dict):
        raise RpcError(INVALID_PARAMS, "Invalid tool arguments")
    spec = get_tool_registry().get(name)
    if spec is None:
        raise RpcError(INVALID_PARAMS, f"Unknown tool: {name}")

    try:
        # Handlers block on file locks; run them in a worker thread.
        result = await asyncio.to_thread(spec.handler, arguments)
        if asyncio.iscoroutine(result):
            result = await result
        if not isinstance(result, ToolResult):
            raise TypeError(f"{name} returned {type(result).__name__}, not ToolResult")
    except Exception:
        logger.exception("Tool %s failed", name)
        raise RpcError(SERVER_ERROR, "Internal tool error") from None
    return {"content": result.content, "structuredContent": result.structured_content}


_METHODS: dict[str, Callable[[Message], Awaitable[Message]]] = {
    "initialize": _initialize,
    "ping": _ping,
    "tools/list": _list_tools,
    "tools/call": _call_tool,
}


def _failure(request_id: object, error: RpcError) -> Message:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {"code": error.code, "message": error.message},
    }


def _send(body: object, headers: dict[str, str], status_code: int = 200) -> Response:
    return Response(
        json.dumps(body, default=json_default, ensure_ascii=False),
        status_code=status_code,
        media_type="application/json",
        headers=headers,
    )


def _header_version(request: Request) -> str:
    version = request.headers.get("MCP-Protocol-Version")
    return version if version in PROTOCOL_VERSIONS else PROTOCOL_VERSIONS[0]


def _check_origin(request: Request) -> str | None:
    """Reason to refuse the request's Origin, or None when it may proceed."""
    allowed = tuple(getattr(request.app.state, "http_allowed_origins", ()))
    if not allowed or "*" in allowed:
        return None
    origin = request.headers.get("origin")
    if not origin:
        allow_missing = bool(getattr(request.app.state, "http_allow_missing_origin", True))
        return None if allow_missing else "origin required"
    return None if origin in allowed else "origin not allowed"
