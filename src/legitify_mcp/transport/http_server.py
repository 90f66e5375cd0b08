"""Starlette HTTP server assembly."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from legitify_mcp.app import get_app_context
from legitify_mcp.config import Settings, load_settings
from legitify_mcp.store.base import LogStoreError, LogStream
from legitify_mcp.transport.mcp_handler import handle_mcp_request

logger = logging.getLogger(__name__)


def create_http_app(settings: Settings | None = None) -> Starlette:
    """Create the HTTP MCP server application."""
    settings = settings or load_settings()

    async def mcp_handler(request: Request) -> Response:
        return await handle_mcp_request(request)

    async def health_handler(request: Request) -> Response:
        return JSONResponse({"status": "ok"})

    async def ready_handler(request: Request) -> Response:
        try:
            store = get_app_context().store
            store.read_all(LogStream.RECEIPTS)
        except (LogStoreError, OSError) as exc:
            logger.warning("Readiness check failed: %s", exc)
            return JSONResponse({"status": "unavailable", "reason": str(exc)}, status_code=503)
        return JSONResponse({"status": "ready"})

    routes = [
        Route("/mcp", endpoint=mcp_handler, methods=["POST", "OPTIONS", "GET"]),
        Route("/health", endpoint=health_handler, methods=["GET"]),
        Route("/ready", endpoint=ready_handler, methods=["GET"]),
    ]

    @asynccontextmanager
    async def lifespan(app: Starlette):
        context = get_app_context()
        logger.info(
            "HTTP transport ready on %s:%d (policy %s)",
            settings.server.host,
            settings.server.port,
            context.policy.policy_version,
        )
        yield

    app = Starlette(routes=routes, lifespan=lifespan)
    app.state.http_allowed_origins = settings.server.http_allowed_origins
    app.state.http_allow_missing_origin = settings.server.http_allow_missing_origin
    return app
