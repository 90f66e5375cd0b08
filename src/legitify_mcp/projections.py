"""Derived views computed by replaying the request and receipt logs.

This is the only place that interprets log order. Lookups scan newest to
oldest and stop at the first match, so the latest record for an id always
wins. Each call is O(n) in the size of the log; an id-to-offset index could
replace the scans as long as it keeps the latest-wins answer.
"""

from __future__ import annotations

import logging
import math

from legitify_mcp.domain.models import STATUS_PENDING, AttestationReceipt, RequestRecord
from legitify_mcp.store.base import LogStore, LogStream

logger = logging.getLogger(__name__)

DEFAULT_PENDING_LIMIT = 25
MAX_PENDING_LIMIT = 100


def latest_receipt_for(store: LogStore, attestation_request_id: str) -> AttestationReceipt | None:
    if not attestation_request_id:
        return None
    for raw in store.iter_reversed(LogStream.RECEIPTS):
        if raw.get("attestation_request_id") != attestation_request_id:
            continue
        try:
            return AttestationReceipt.from_dict(raw)
        except ValueError as exc:
            logger.warning("Skipping undecodable receipt for %s: %s", attestation_request_id, exc)
    return None


def latest_request_for(store: LogStore, attestation_request_id: str) -> RequestRecord | None:
    if not attestation_request_id:
        return None
    for raw in store.iter_reversed(LogStream.REQUESTS):
        if raw.get("id") != attestation_request_id:
            continue
        try:
            return RequestRecord.from_dict(raw)
        except ValueError as exc:
            logger.warning("Skipping undecodable request %s: %s", attestation_request_id, exc)
    return None


def clamp_limit(limit: object) -> int:
    """Coerce a caller-supplied limit into [1, MAX_PENDING_LIMIT]."""
    if isinstance(limit, bool) or limit is None:
        return DEFAULT_PENDING_LIMIT
    try:
        value = float(limit)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_PENDING_LIMIT
    if math.isnan(value) or value == 0:
        # A zero limit is treated like an absent one.
        return DEFAULT_PENDING_LIMIT
    return int(max(1, min(MAX_PENDING_LIMIT, value)))


def pending_requests(store: LogStore, limit: object = DEFAULT_PENDING_LIMIT) -> list[RequestRecord]:
    """Most recently submitted requests whose intrinsic status is pending.

    The receipt log is deliberately not consulted: this is the queue as
    written, newest first.
    """
    count = clamp_limit(limit)
    pending: list[RequestRecord] = []
    for raw in store.iter_reversed(LogStream.REQUESTS):
        if (raw.get("status") or STATUS_PENDING) != STATUS_PENDING:
            continue
        try:
            pending.append(RequestRecord.from_dict(raw))
        except ValueError as exc:
            logger.warning("Skipping undecodable request record: %s", exc)
            continue
        if len(pending) >= count:
            break
    return pending
