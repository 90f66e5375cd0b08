from __future__ import annotations

from pathlib import Path

import pytest

from legitify_mcp import config


def test_split_csv_preserve_case() -> None:
    assert config._split_csv_preserve_case(" A, B ,,C ") == ["A", "B", "C"]
    assert config._split_csv_preserve_case(None) == []


def test_env_int_invalid_value_returns_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_INT_INVALID", "not_a_number")
    assert config._env_int("TEST_INT_INVALID", 42) == 42


def test_env_bool(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_BOOL", "Yes")
    assert config._env_bool("TEST_BOOL", False) is True
    monkeypatch.setenv("TEST_BOOL", "0")
    assert config._env_bool("TEST_BOOL", True) is False
    monkeypatch.delenv("TEST_BOOL")
    assert config._env_bool("TEST_BOOL", True) is True


def test_default_stream_paths(tmp_path: Path) -> None:
    settings = config.load_settings()
    queue = (tmp_path / "queue").resolve()
    assert settings.storage.queue_dir == str(queue)
    assert settings.storage.resolved_requests_path == str(queue / "attestation-requests.jsonl")
    assert settings.storage.resolved_receipts_path == str(queue / "attestation-responses.jsonl")


def test_explicit_stream_paths(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LEGITIFY_QUEUE_PATH", str(tmp_path / "q.jsonl"))
    monkeypatch.setenv("LEGITIFY_RESPONSES_PATH", str(tmp_path / "r.jsonl"))
    settings = config.load_settings()
    assert settings.storage.resolved_requests_path == str((tmp_path / "q.jsonl").resolve())
    assert settings.storage.resolved_receipts_path == str((tmp_path / "r.jsonl").resolve())


def test_review_and_server_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LEGITIFY_DEFAULT_REVIEWER", "ops-oncall")
    monkeypatch.setenv("LEGITIFY_DEFAULT_SCOPE", "deploy_release")
    monkeypatch.setenv("TRANSPORT_MODE", "HTTP")
    monkeypatch.setenv("MCP_RUNTIME", "simple")
    monkeypatch.setenv("HTTP_ALLOWED_ORIGINS", "https://a.example, https://b.example")

    settings = config.load_settings()
    assert settings.review.default_reviewer == "ops-oncall"
    assert settings.review.default_scope == "deploy_release"
    assert settings.server.transport_mode == "http"
    assert settings.server.runtime == "simple"
    assert settings.server.http_allowed_origins == ("https://a.example", "https://b.example")


def test_settings_are_cached() -> None:
    assert config.load_settings() is config.load_settings()


def test_invalid_configuration_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MCP_PORT", "80")
    with pytest.raises(RuntimeError, match="Invalid configuration"):
        config.load_settings()


def test_unknown_transport_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRANSPORT_MODE", "carrier-pigeon")
    with pytest.raises(RuntimeError, match="Invalid configuration"):
        config.load_settings()
