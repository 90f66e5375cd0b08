"""Policy catalog models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from legitify_mcp.domain.models import DECISIONS

DEFAULT_EVIDENCE_EXAMPLES = (
    "PR link + diff summary + staging proof (deploy)",
    "Invoice/checkout link + vendor domain + purpose (spend)",
    "Who/what/why + duration + scope (access)",
)


def _ensure_list(v: Any) -> list:
    """Convert None to empty list, pass through lists."""
    if v is None:
        return []
    return v


class PolicyGuidance(BaseModel):
    model_config = ConfigDict(frozen=True)

    required_evidence_examples: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EVIDENCE_EXAMPLES)
    )

    @field_validator("required_evidence_examples", mode="before")
    @classmethod
    def _validate_examples(cls, v: Any) -> list:
        return _ensure_list(v)


class PolicyCatalog(BaseModel):
    """Versioned, read-only approval policy.

    The version is stamped on every receipt recorded while it is active.
    """

    model_config = ConfigDict(frozen=True)

    policy_version: str = Field(default="v1", min_length=1)
    default_monthly_approval_cap_usd: float = Field(default=2000, ge=0)
    decisions: list[str] = Field(default_factory=lambda: list(DECISIONS))
    guidance: PolicyGuidance = Field(default_factory=PolicyGuidance)

    @field_validator("decisions", mode="before")
    @classmethod
    def _validate_decisions(cls, v: Any) -> list:
        values = _ensure_list(v) or list(DECISIONS)
        unknown = [item for item in values if item not in DECISIONS]
        if unknown:
            raise ValueError(f"unsupported decisions: {', '.join(map(str, unknown))}")
        return values

    @classmethod
    def from_yaml(cls, data: dict[str, object]) -> "PolicyCatalog":
        return cls.model_validate(data)

    def snapshot(self) -> dict[str, object]:
        payload = self.model_dump(mode="json")
        cap = self.default_monthly_approval_cap_usd
        if cap == int(cap):
            payload["default_monthly_approval_cap_usd"] = int(cap)
        return payload
