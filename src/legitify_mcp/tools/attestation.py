"""
Attestation tools.

Six tools map one-to-one onto the lifecycle engine:
- legitify.submit_attestation_request
- legitify.get_attestation_status
- legitify.get_policy
- legitify.list_pending_requests
- legitify.get_pending_request_details
- legitify.review_request
"""

from __future__ import annotations

from legitify_mcp.app import get_app_context
from legitify_mcp.domain.models import DECISIONS, KINDS, REQUESTED_ACTIONS, RISK_LEVELS
from legitify_mcp.mcp_runtime import ToolResult, ToolSpec
from legitify_mcp.projections import DEFAULT_PENDING_LIMIT, MAX_PENDING_LIMIT
from legitify_mcp.tools.base import check_arguments, result_from_payload

_REQUEST_ID_PROPERTY = {
    "type": "string",
    "description": "Identifier returned by legitify.submit_attestation_request (attreq_...).",
}

SUBMIT_SCHEMA = {
    "type": "object",
    "properties": {
        "kind": {"type": "string", "enum": list(KINDS), "default": "compliance_action"},
        "title": {"type": "string", "minLength": 1, "description": "Short name of the action."},
        "summary": {
            "type": "string",
            "minLength": 1,
            "description": "What will happen if approved, and why.",
        },
        "risk_level": {"type": "string", "enum": list(RISK_LEVELS), "default": "medium"},
        "links": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Absolute URLs supporting the request (PRs, invoices, tickets).",
        },
        "evidence": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Free-text evidence references.",
        },
        "requested_action": {
            "type": "string",
            "enum": list(REQUESTED_ACTIONS),
            "default": "approve",
        },
        "spend_usd": {"type": "number", "minimum": 0},
        "currency": {"type": "string", "default": "USD"},
    },
    "required": ["title", "summary"],
}

STATUS_SCHEMA = {
    "type": "object",
    "properties": {"attestation_request_id": _REQUEST_ID_PROPERTY},
    "required": ["attestation_request_id"],
}

POLICY_SCHEMA: dict[str, object] = {"type": "object", "properties": {}}

LIST_PENDING_SCHEMA = {
    "type": "object",
    "properties": {
        "limit": {
            "type": "number",
            "description": (
                f"Maximum entries to return (default {DEFAULT_PENDING_LIMIT}); "
                f"values are clamped to 1-{MAX_PENDING_LIMIT}."
            ),
        }
    },
}

DETAILS_SCHEMA = {
    "type": "object",
    "properties": {"attestation_request_id": _REQUEST_ID_PROPERTY},
    "required": ["attestation_request_id"],
}

REVIEW_SCHEMA = {
    "type": "object",
    "properties": {
        "attestation_request_id": _REQUEST_ID_PROPERTY,
        "decision": {"type": "string", "enum": list(DECISIONS)},
        "scope": {"type": "string", "description": "What exactly is approved, e.g. deploy_release."},
        "notes": {"type": "string"},
        "reviewed_by": {"type": "string"},
    },
    "required": ["attestation_request_id", "decision"],
}

# Handlers check types only; the engine trims and lower-cases the decision.
_REVIEW_ARGUMENT_TYPES = {
    **REVIEW_SCHEMA,
    "properties": {
        **REVIEW_SCHEMA["properties"],
        "decision": {"type": "string"},
    },
}


def submit_attestation_request(payload: dict[str, object]) -> ToolResult:
    # The engine validates submissions itself and reports every bad field.
    outcome = get_app_context().engine.submit(payload)
    return result_from_payload(outcome.to_payload())


def get_attestation_status(payload: dict[str, object]) -> ToolResult:
    invalid = check_arguments(STATUS_SCHEMA, payload)
    if invalid is not None:
        return invalid
    outcome = get_app_context().engine.get_status(str(payload["attestation_request_id"]))
    return result_from_payload(outcome.to_payload())


def get_policy(payload: dict[str, object]) -> ToolResult:
    policy = get_app_context().engine.get_policy()
    return result_from_payload({"ok": True, **policy.snapshot()})


def list_pending_requests(payload: dict[str, object]) -> ToolResult:
    invalid = check_arguments(LIST_PENDING_SCHEMA, payload)
    if invalid is not None:
        return invalid
    listing = get_app_context().engine.list_pending(payload.get("limit", DEFAULT_PENDING_LIMIT))
    return result_from_payload(listing.to_payload())


def get_pending_request_details(payload: dict[str, object]) -> ToolResult:
    invalid = check_arguments(DETAILS_SCHEMA, payload)
    if invalid is not None:
        return invalid
    outcome = get_app_context().engine.get_pending_details(
        str(payload["attestation_request_id"])
    )
    return result_from_payload(outcome.to_payload())


def review_request(payload: dict[str, object]) -> ToolResult:
    invalid = check_arguments(_REVIEW_ARGUMENT_TYPES, payload)
    if invalid is not None:
        return invalid
    outcome = get_app_context().engine.review(
        str(payload["attestation_request_id"]),
        str(payload["decision"]),
        scope=_optional_str(payload.get("scope")),
        notes=_optional_str(payload.get("notes")),
        reviewed_by=_optional_str(payload.get("reviewed_by")),
    )
    return result_from_payload(outcome.to_payload())


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) else None


submit_tool = ToolSpec(
    name="legitify.submit_attestation_request",
    description=(
        "Submit a request for human attestation (approval receipt). "
        "Returns attestation_request_id and status=pending. "
        "Invalid input returns status=needs_info with every offending field listed."
    ),
    input_schema=SUBMIT_SCHEMA,
    handler=submit_attestation_request,
)

status_tool = ToolSpec(
    name="legitify.get_attestation_status",
    description=(
        "Get status for an attestation_request_id: pending until a human records a "
        "decision, then approved/denied/needs_info with the receipt attached."
    ),
    input_schema=STATUS_SCHEMA,
    handler=get_attestation_status,
)

policy_tool = ToolSpec(
    name="legitify.get_policy",
    description="Get default policy info (caps, decisions, required evidence expectations).",
    input_schema=POLICY_SCHEMA,
    handler=get_policy,
)

list_pending_tool = ToolSpec(
    name="legitify.list_pending_requests",
    description="List pending attestation requests from the local queue, newest first.",
    input_schema=LIST_PENDING_SCHEMA,
    handler=list_pending_requests,
)

details_tool = ToolSpec(
    name="legitify.get_pending_request_details",
    description="Fetch full details for a queued request by id (including evidence).",
    input_schema=DETAILS_SCHEMA,
    handler=get_pending_request_details,
)

review_tool = ToolSpec(
    name="legitify.review_request",
    description=(
        "Write a human attestation receipt for an existing attestation_request_id "
        "(approved/denied/needs_info). The first decision recorded for a request is "
        "final; repeated calls return the existing receipt."
    ),
    input_schema=REVIEW_SCHEMA,
    handler=review_request,
)
