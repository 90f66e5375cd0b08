"""Attestation request lifecycle.

A request is born ``pending`` and becomes ``approved``, ``denied`` or
``needs_info`` the moment a receipt for it exists. Status is never stored
in place; it is derived from the receipt log on every query.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from legitify_mcp import projections
from legitify_mcp.domain.models import (
    DECISIONS,
    STATUS_NEEDS_INFO,
    STATUS_PENDING,
    AttestationReceipt,
    Outcome,
    PendingListing,
    RequestRecord,
    RequestSnapshot,
)
from legitify_mcp.domain.validation import parse_request
from legitify_mcp.policy.models import PolicyCatalog
from legitify_mcp.store.base import LogStore, LogStream
from legitify_mcp.utils.ids import new_receipt_id, new_request_id
from legitify_mcp.utils.time import utc_now_iso

logger = logging.getLogger(__name__)

MISSING_ID_ERROR = "missing attestation_request_id"
INVALID_REVIEW_ERROR = "missing/invalid attestation_request_id or decision"
NOT_FOUND_ERROR = "request not found in queue"
QUEUED_MESSAGE = "Queued for human review. Attach evidence links if available."


@dataclass(frozen=True)
class ReviewDefaults:
    reviewed_by: str = "human_reviewer"
    scope: str = "human_attestation_v1"


class AttestationEngine:
    """Submit, review and query attestation requests over an injected log store."""

    def __init__(
        self,
        store: LogStore,
        policy: PolicyCatalog,
        defaults: ReviewDefaults | None = None,
        clock: Callable[[], str] = utc_now_iso,
        request_id_factory: Callable[[], str] = new_request_id,
        receipt_id_factory: Callable[[], str] = new_receipt_id,
    ) -> None:
        self._store = store
        self._policy = policy
        self._defaults = defaults or ReviewDefaults()
        self._clock = clock
        self._new_request_id = request_id_factory
        self._new_receipt_id = receipt_id_factory

    @property
    def store(self) -> LogStore:
        return self._store

    @property
    def policy(self) -> PolicyCatalog:
        return self._policy

    def submit(self, payload: Mapping[str, object]) -> Outcome:
        request, errors = parse_request(payload)
        if request is None:
            logger.info("Rejected submission: %d invalid field(s)", len(errors))
            return Outcome(ok=False, status=STATUS_NEEDS_INFO, errors=errors)

        record = RequestRecord(
            id=self._new_request_id(),
            created_at=self._clock(),
            request=request.model_dump(mode="json"),
        )
        self._store.append(LogStream.REQUESTS, record.to_dict())
        logger.info(
            "Queued attestation request %s (kind=%s, risk=%s)",
            record.id,
            request.kind,
            request.risk_level,
        )
        return Outcome(
            ok=True,
            status=STATUS_PENDING,
            attestation_request_id=record.id,
            next={"message": QUEUED_MESSAGE},
        )

    def get_status(self, attestation_request_id: str) -> Outcome:
        """Effective status of a request.

        An id with no receipt is ``pending`` whether or not it was ever
        submitted; the request log is not consulted.
        """
        request_id = _clean_id(attestation_request_id)
        if not request_id:
            return Outcome(ok=False, status=STATUS_NEEDS_INFO, error=MISSING_ID_ERROR)

        receipt = projections.latest_receipt_for(self._store, request_id)
        if receipt is None:
            return Outcome(ok=True, status=STATUS_PENDING, attestation_request_id=request_id)
        return Outcome(
            ok=True,
            status=receipt.decision,
            attestation_request_id=request_id,
            receipt=receipt,
        )

    def get_policy(self) -> PolicyCatalog:
        return self._policy

    def list_pending(self, limit: object = projections.DEFAULT_PENDING_LIMIT) -> PendingListing:
        return PendingListing(items=projections.pending_requests(self._store, limit))

    def get_pending_details(self, attestation_request_id: str) -> Outcome:
        request_id = _clean_id(attestation_request_id)
        if not request_id:
            return Outcome(ok=False, status=STATUS_NEEDS_INFO, error=MISSING_ID_ERROR)

        record = projections.latest_request_for(self._store, request_id)
        if record is None:
            return Outcome(
                ok=False,
                status=STATUS_NEEDS_INFO,
                attestation_request_id=request_id,
                error=NOT_FOUND_ERROR,
            )
        return Outcome(
            ok=True,
            status=record.status,
            attestation_request_id=request_id,
            request=record,
        )

    def review(
        self,
        attestation_request_id: str,
        decision: str,
        scope: str | None = None,
        notes: str | None = None,
        reviewed_by: str | None = None,
    ) -> Outcome:
        """Record a decision; the first decision for a request wins.

        The receipt lookup and the append run inside the store's decision
        lock, so concurrent reviewers cannot both record a receipt.
        """
        request_id = _clean_id(attestation_request_id)
        normalized = str(decision or "").strip().lower()
        if not request_id or normalized not in DECISIONS:
            return Outcome(ok=False, status=STATUS_NEEDS_INFO, error=INVALID_REVIEW_ERROR)

        record = projections.latest_request_for(self._store, request_id)
        if record is None:
            logger.info("Review for unknown request %s ignored", request_id)
            return Outcome(
                ok=False,
                status=STATUS_NEEDS_INFO,
                attestation_request_id=request_id,
                error=NOT_FOUND_ERROR,
            )

        with self._store.decision_lock():
            existing = projections.latest_receipt_for(self._store, request_id)
            if existing is not None:
                logger.info(
                    "Request %s already decided as %s; returning receipt %s (asked: %s)",
                    request_id,
                    existing.decision,
                    existing.attestation_id,
                    normalized,
                )
                return Outcome(
                    ok=True,
                    status=existing.decision,
                    attestation_request_id=request_id,
                    receipt=existing,
                    idempotent=True,
                )

            receipt = AttestationReceipt(
                attestation_id=self._new_receipt_id(),
                attestation_request_id=request_id,
                decision=normalized,
                reviewed_by=_or_default(reviewed_by, self._defaults.reviewed_by),
                timestamp=self._clock(),
                scope=_or_default(scope, self._defaults.scope),
                policy_version=self._policy.policy_version,
                request=RequestSnapshot.from_request(record),
                notes=str(notes or ""),
            )
            self._store.append(LogStream.RECEIPTS, receipt.to_dict())

        logger.info(
            "Recorded %s for %s by %s (receipt %s)",
            receipt.decision,
            request_id,
            receipt.reviewed_by,
            receipt.attestation_id,
        )
        return Outcome(
            ok=True,
            status=receipt.decision,
            attestation_request_id=request_id,
            receipt=receipt,
        )


def _clean_id(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _or_default(value: str | None, default: str) -> str:
    text = str(value).strip() if value is not None else ""
    return text or default
