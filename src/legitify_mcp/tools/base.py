"""Tool helpers."""

from __future__ import annotations

import json

from legitify_mcp.domain.models import STATUS_NEEDS_INFO
from legitify_mcp.mcp_runtime import ToolResult
from legitify_mcp.utils.jsonschema import format_argument_errors, validate_arguments
from legitify_mcp.utils.serialization import json_default


def result_from_payload(payload: dict[str, object]) -> ToolResult:
    text = json.dumps(payload, ensure_ascii=True, indent=2, default=json_default)
    content = [{"type": "text", "text": text}]
    return ToolResult(content=content, structured_content=payload)


def check_arguments(schema: dict[str, object], payload: dict[str, object]) -> ToolResult | None:
    """Return a ``needs_info`` result when arguments violate ``schema``, else None."""
    errors = validate_arguments(schema, payload)
    if not errors:
        return None
    body: dict[str, object] = {
        "ok": False,
        "status": STATUS_NEEDS_INFO,
        "error": "invalid arguments",
    }
    body.update(format_argument_errors(errors))
    return result_from_payload(body)
