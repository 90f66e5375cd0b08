"""Submission schema for attestation requests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Literal

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from legitify_mcp.domain.models import DEFAULT_CURRENCY, FieldError

_URL_ADAPTER = TypeAdapter(AnyUrl)


def _check_url(value: str) -> str:
    # Validate with pydantic but keep the caller's spelling; AnyUrl would
    # normalise (e.g. add a trailing slash).
    try:
        parsed = _URL_ADAPTER.validate_python(value)
    except ValidationError as exc:
        raise ValueError(f"not a valid URL: {exc.errors()[0]['msg']}") from exc
    if not parsed.host:
        raise ValueError("URL must include a host")
    return value


Link = Annotated[str, AfterValidator(_check_url)]


class AttestationRequest(BaseModel):
    """An action submitted for human attestation."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    kind: Literal[
        "contract", "filing", "compliance_action", "financial_instruction", "deploy", "access"
    ] = "compliance_action"
    title: str = Field(min_length=1)
    summary: str = Field(min_length=1)
    risk_level: Literal["low", "medium", "high"] = "medium"
    links: list[Link] = Field(default_factory=list)
    evidence: list[str] = Field(default_factory=list)
    requested_action: Literal["approve", "deny", "needs_info"] = "approve"
    spend_usd: float | None = Field(default=None, ge=0, strict=True, allow_inf_nan=False)
    currency: str = DEFAULT_CURRENCY

    @field_validator("title", "summary")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("links", "evidence", "currency", mode="before")
    @classmethod
    def _none_means_default(cls, value: object, info: ValidationInfo) -> object:
        if value is None:
            return DEFAULT_CURRENCY if info.field_name == "currency" else []
        return value


def parse_request(payload: object) -> tuple[AttestationRequest | None, list[FieldError]]:
    """Validate a submission, collecting every violated field."""
    if not isinstance(payload, Mapping):
        return None, [FieldError(field="(root)", message="expected an object", type="invalid_type")]
    try:
        return AttestationRequest.model_validate(dict(payload)), []
    except ValidationError as exc:
        return None, [
            FieldError(
                field=".".join(str(part) for part in err["loc"]) or "(root)",
                message=err["msg"],
                type=err["type"],
            )
            for err in exc.errors()
        ]
