from __future__ import annotations

import pytest

from legitify_mcp.domain.validation import parse_request


def _fields(errors) -> set[str]:
    return {err.field for err in errors}


def test_defaults_are_applied() -> None:
    request, errors = parse_request({"title": "t", "summary": "s"})
    assert errors == []
    assert request is not None
    assert request.kind == "compliance_action"
    assert request.risk_level == "medium"
    assert request.requested_action == "approve"
    assert request.links == []
    assert request.evidence == []
    assert request.spend_usd is None
    assert request.currency == "USD"


def test_empty_title_is_reported() -> None:
    request, errors = parse_request({"title": "", "summary": "x"})
    assert request is None
    assert _fields(errors) == {"title"}


def test_every_violation_is_reported() -> None:
    _, errors = parse_request(
        {
            "title": "   ",
            "kind": "rocket_launch",
            "risk_level": "extreme",
            "links": ["https://ok.example.com", "not a url"],
            "spend_usd": -5,
            "requested_action": "maybe",
        }
    )
    assert _fields(errors) == {
        "title",
        "summary",
        "kind",
        "risk_level",
        "links.1",
        "spend_usd",
        "requested_action",
    }


@pytest.mark.parametrize("spend", ["100", True, float("nan"), float("inf")])
def test_spend_must_be_a_finite_number(spend: object) -> None:
    _, errors = parse_request({"title": "t", "summary": "s", "spend_usd": spend})
    assert _fields(errors) == {"spend_usd"}


def test_integer_and_zero_spend_accepted() -> None:
    request, errors = parse_request({"title": "t", "summary": "s", "spend_usd": 0})
    assert errors == []
    assert request is not None and request.spend_usd == 0


def test_links_keep_caller_spelling() -> None:
    request, _ = parse_request(
        {"title": "t", "summary": "s", "links": ["https://example.com"]}
    )
    assert request is not None
    assert request.links == ["https://example.com"]


def test_link_without_host_rejected() -> None:
    _, errors = parse_request({"title": "t", "summary": "s", "links": ["mailto:someone"]})
    assert _fields(errors) == {"links.0"}


def test_null_optionals_fall_back_to_defaults() -> None:
    request, errors = parse_request(
        {"title": "t", "summary": "s", "links": None, "evidence": None, "currency": None}
    )
    assert errors == []
    assert request is not None
    assert request.links == []
    assert request.currency == "USD"


def test_unknown_fields_are_dropped() -> None:
    request, errors = parse_request({"title": "t", "summary": "s", "status": "approved"})
    assert errors == []
    assert "status" not in request.model_dump()


def test_non_mapping_payload() -> None:
    request, errors = parse_request(["title"])
    assert request is None
    assert errors[0].field == "(root)"
    assert errors[0].type == "invalid_type"
