"""Entrypoint for the Legitify MCP server."""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path

if __package__ in (None, ""):
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))  # pragma: no cover

from legitify_mcp import __version__
from legitify_mcp.app import get_app_context
from legitify_mcp.config import load_settings
from legitify_mcp.logging_utils import configure_logging
from legitify_mcp.mcp_runtime import MCPServer
from legitify_mcp.tools import register_tools

logger = logging.getLogger(__name__)


def _is_http_transport(mode: str) -> bool:
    return mode == "http"


def build_server() -> MCPServer:
    """Create and configure the MCP server instance."""

    settings = load_settings()
    configure_logging()

    server = MCPServer(
        name="legitify-mcp",
        version=__version__,
        instructions=settings.server.instructions,
        runtime=settings.server.runtime,
    )

    context = get_app_context()
    logger.info("Initializing Legitify MCP Server v%s (%s runtime)", __version__, server.mode)
    logger.info(
        "Queue: requests=%s receipts=%s",
        settings.storage.resolved_requests_path,
        settings.storage.resolved_receipts_path,
    )
    logger.info("Active policy version: %s", context.policy.policy_version)
    register_tools(server)
    return server


def run_entrypoint() -> None:
    """Run the server based on transport settings."""
    settings = load_settings()
    if _is_http_transport(settings.server.transport_mode):
        _run_http()
        return
    get_server().run()


def _run_http() -> None:
    settings = load_settings()
    configure_logging()
    from legitify_mcp.transport.http_server import create_http_app

    import uvicorn

    app = create_http_app(settings)
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        ws="none",
        log_config=None,
    )


_server: MCPServer | None = None
_server_lock = threading.Lock()


def get_server() -> MCPServer:
    """Lazily initialise and return the module-level server instance."""
    global _server
    if _server is not None:
        return _server
    with _server_lock:
        if _server is None:
            _server = build_server()
        return _server


if __name__ == "__main__":  # pragma: no cover
    run_entrypoint()
