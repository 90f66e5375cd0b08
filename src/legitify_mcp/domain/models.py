"""Record types stored in the request and receipt logs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

KINDS = ("contract", "filing", "compliance_action", "financial_instruction", "deploy", "access")
RISK_LEVELS = ("low", "medium", "high")
REQUESTED_ACTIONS = ("approve", "deny", "needs_info")
DECISIONS = ("approved", "denied", "needs_info")

STATUS_PENDING = "pending"
STATUS_NEEDS_INFO = "needs_info"

DEFAULT_CURRENCY = "USD"


def _str_list(value: object) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(item) for item in value)


@dataclass(frozen=True)
class RequestRecord:
    """One submitted attestation request as appended to the request log.

    ``status`` is the intrinsic queue status stamped at creation; it is
    never rewritten. The effective status lives in the receipt log.
    """

    id: str
    created_at: str
    request: dict[str, Any]
    status: str = STATUS_PENDING

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "status": self.status,
            "created_at": self.created_at,
            "request": dict(self.request),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RequestRecord:
        record_id = data.get("id")
        if not isinstance(record_id, str) or not record_id:
            raise ValueError("request record has no id")
        request = data.get("request")
        if not isinstance(request, dict):
            request = {}
        # Records written before the snake_case rename carry ``createdAt``.
        created_at = data.get("created_at") or data.get("createdAt") or ""
        return cls(
            id=record_id,
            created_at=str(created_at),
            request=request,
            status=str(data.get("status") or STATUS_PENDING),
        )

    def summary(self) -> dict[str, object]:
        """Queue listing view; evidence is left out."""
        return {
            "id": self.id,
            "created_at": self.created_at,
            "kind": self.request.get("kind"),
            "risk_level": self.request.get("risk_level"),
            "title": self.request.get("title"),
            "summary": self.request.get("summary"),
            "links": list(_str_list(self.request.get("links"))),
            "spend_usd": self.request.get("spend_usd"),
            "currency": self.request.get("currency") or DEFAULT_CURRENCY,
        }


@dataclass(frozen=True)
class RequestSnapshot:
    """Copy of a request's reviewable fields, frozen into the receipt."""

    kind: str | None
    title: str | None
    summary: str | None
    risk_level: str | None
    links: tuple[str, ...] = ()
    evidence: tuple[str, ...] = ()
    spend_usd: float | None = None
    currency: str = DEFAULT_CURRENCY

    @classmethod
    def from_request(cls, record: RequestRecord) -> RequestSnapshot:
        return cls.from_dict(record.request)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RequestSnapshot:
        return cls(
            kind=data.get("kind"),
            title=data.get("title"),
            summary=data.get("summary"),
            risk_level=data.get("risk_level"),
            links=_str_list(data.get("links")),
            evidence=_str_list(data.get("evidence")),
            spend_usd=data.get("spend_usd"),
            currency=data.get("currency") or DEFAULT_CURRENCY,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind,
            "title": self.title,
            "summary": self.summary,
            "risk_level": self.risk_level,
            "links": list(self.links),
            "evidence": list(self.evidence),
            "spend_usd": self.spend_usd,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class AttestationReceipt:
    """A human decision on exactly one request."""

    attestation_id: str
    attestation_request_id: str
    decision: str
    reviewed_by: str
    timestamp: str
    scope: str
    policy_version: str
    request: RequestSnapshot
    notes: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "attestation_id": self.attestation_id,
            "attestation_request_id": self.attestation_request_id,
            "reviewed_by": self.reviewed_by,
            "timestamp": self.timestamp,
            "scope": self.scope,
            "decision": self.decision,
            "policy_version": self.policy_version,
            "notes": self.notes,
            "request": self.request.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AttestationReceipt:
        request_id = data.get("attestation_request_id")
        if not isinstance(request_id, str) or not request_id:
            raise ValueError("receipt has no attestation_request_id")
        snapshot = data.get("request")
        return cls(
            attestation_id=str(data.get("attestation_id") or ""),
            attestation_request_id=request_id,
            # Early receipts were written without a decision and meant approval.
            decision=str(data.get("decision") or "approved"),
            reviewed_by=str(data.get("reviewed_by") or ""),
            timestamp=str(data.get("timestamp") or ""),
            scope=str(data.get("scope") or ""),
            policy_version=str(data.get("policy_version") or ""),
            request=RequestSnapshot.from_dict(snapshot if isinstance(snapshot, dict) else {}),
            notes=str(data.get("notes") or ""),
        )


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    type: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message, "type": self.type}


@dataclass
class Outcome:
    """Result of a lifecycle operation.

    Expected outcomes (pending, decided, not found, invalid input) are all
    reported through this object; nothing here is raised.
    """

    ok: bool
    status: str
    attestation_request_id: str | None = None
    receipt: AttestationReceipt | None = None
    request: RequestRecord | None = None
    error: str | None = None
    errors: list[FieldError] = field(default_factory=list)
    next: dict[str, str] | None = None
    idempotent: bool = False

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {"ok": self.ok, "status": self.status}
        if self.attestation_request_id is not None:
            payload["attestation_request_id"] = self.attestation_request_id
        if self.error is not None:
            payload["error"] = self.error
        if self.errors:
            payload["errors"] = [err.to_dict() for err in self.errors]
        if self.request is not None:
            payload["request"] = self.request.to_dict()
        if self.receipt is not None:
            payload["receipt"] = self.receipt.to_dict()
        if self.idempotent:
            payload["idempotent"] = True
        if self.next is not None:
            payload["next"] = dict(self.next)
        return payload


@dataclass
class PendingListing:
    items: list[RequestRecord]

    @property
    def count(self) -> int:
        return len(self.items)

    def to_payload(self) -> dict[str, object]:
        return {
            "ok": True,
            "count": self.count,
            "pending": [item.summary() for item in self.items],
        }
