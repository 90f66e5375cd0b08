from unittest.mock import MagicMock, patch

import pytest
from starlette.testclient import TestClient

from legitify_mcp import config
from legitify_mcp.app import AppContext, build_app_context
from legitify_mcp.config import load_settings
from legitify_mcp.store.base import LogStoreError
from legitify_mcp.store.memory import InMemoryLogStore
from legitify_mcp.transport.http_server import create_http_app


@pytest.fixture
def context(monkeypatch: pytest.MonkeyPatch) -> AppContext:
    ctx = build_app_context(load_settings(), store=InMemoryLogStore())
    monkeypatch.setattr("legitify_mcp.transport.http_server.get_app_context", lambda: ctx)
    monkeypatch.setattr("legitify_mcp.tools.attestation.get_app_context", lambda: ctx)
    return ctx


@pytest.fixture
def client(context: AppContext):
    with TestClient(create_http_app(load_settings())) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ready(client: TestClient) -> None:
    response = client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


def test_ready_reports_unreadable_store(context: AppContext) -> None:
    broken = MagicMock()
    broken.store.read_all.side_effect = LogStoreError("queue unreadable")
    with patch("legitify_mcp.transport.http_server.get_app_context", return_value=broken):
        with TestClient(create_http_app(load_settings())) as test_client:
            response = test_client.get("/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "unavailable"


def test_mcp_submit_then_review(client: TestClient) -> None:
    submit = client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 1,
            "method": "tools/call",
            "params": {
                "name": "legitify.submit_attestation_request",
                "arguments": {"title": "Pay invoice", "summary": "Vendor invoice", "spend_usd": 120.5},
            },
        },
    )
    assert submit.status_code == 200
    request_id = submit.json()["result"]["structuredContent"]["attestation_request_id"]

    review = client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 2,
            "method": "tools/call",
            "params": {
                "name": "legitify.review_request",
                "arguments": {"attestation_request_id": request_id, "decision": "denied"},
            },
        },
    )
    receipt = review.json()["result"]["structuredContent"]["receipt"]
    assert receipt["decision"] == "denied"
    assert receipt["request"]["spend_usd"] == 120.5


def test_mcp_get_not_allowed(client: TestClient) -> None:
    assert client.get("/mcp").status_code == 405


def test_origin_allowlist_applied(context: AppContext, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HTTP_ALLOWED_ORIGINS", "https://console.example")
    monkeypatch.setenv("HTTP_ALLOW_MISSING_ORIGIN", "false")
    config._load_settings_cached.cache_clear()
    settings = load_settings()
    with TestClient(create_http_app(settings)) as test_client:
        missing = test_client.post("/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "ping"})
        allowed = test_client.post(
            "/mcp",
            json={"jsonrpc": "2.0", "id": 1, "method": "ping"},
            headers={"Origin": "https://console.example"},
        )

    assert missing.status_code == 403
    assert allowed.status_code == 200
