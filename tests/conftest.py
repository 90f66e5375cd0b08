from __future__ import annotations

import itertools
from pathlib import Path

import pytest

from legitify_mcp import app, config
from legitify_mcp.engine import AttestationEngine, ReviewDefaults
from legitify_mcp.policy.models import PolicyCatalog
from legitify_mcp.store.jsonl import JsonlLogStore
from legitify_mcp.store.memory import InMemoryLogStore


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    # Never read the developer's .env or write to ~/.legitify from tests.
    monkeypatch.setattr(config, "load_dotenv", lambda **_: None)
    monkeypatch.setenv("LEGITIFY_QUEUE_DIR", str(tmp_path / "queue"))
    config._load_settings_cached.cache_clear()
    app.get_app_context.cache_clear()
    yield
    config._load_settings_cached.cache_clear()
    app.get_app_context.cache_clear()


@pytest.fixture
def clock():
    ticks = itertools.count(1)
    return lambda: f"2026-01-01T00:00:{next(ticks):02d}+00:00"


@pytest.fixture
def memory_store() -> InMemoryLogStore:
    return InMemoryLogStore()


@pytest.fixture
def jsonl_store(tmp_path: Path) -> JsonlLogStore:
    return JsonlLogStore(str(tmp_path / "store"), fsync=False)


@pytest.fixture
def engine(memory_store: InMemoryLogStore, clock) -> AttestationEngine:
    return AttestationEngine(
        memory_store,
        PolicyCatalog(),
        defaults=ReviewDefaults(reviewed_by="default_reviewer", scope="default_scope"),
        clock=clock,
    )


@pytest.fixture
def valid_payload() -> dict[str, object]:
    return {
        "title": "Deploy v1.2.3",
        "summary": "Ship release",
        "kind": "deploy",
        "risk_level": "medium",
        "links": ["https://example.com/pr/123"],
    }
