"""Tool registration helpers."""

from __future__ import annotations

from legitify_mcp.logging_utils import get_logger
from legitify_mcp.mcp_runtime import MCPServer, ToolSpec
from legitify_mcp.tools.attestation import (
    details_tool,
    list_pending_tool,
    policy_tool,
    review_tool,
    status_tool,
    submit_tool,
)

__all__ = ["get_tool_registry", "get_tool_specs", "register_tools"]


def get_tool_specs() -> list[ToolSpec]:
    return [
        submit_tool,
        status_tool,
        policy_tool,
        list_pending_tool,
        review_tool,
        details_tool,
    ]


def get_tool_registry() -> dict[str, ToolSpec]:
    return {tool.name: tool for tool in get_tool_specs()}


def register_tools(server: MCPServer) -> None:
    """Register the attestation tools with the MCP server."""
    logger = get_logger(__name__)
    specs = get_tool_specs()
    for tool in specs:
        server.add_tool(tool)
    logger.info("Registered %d tools: %s", len(specs), ", ".join(t.name for t in specs))
