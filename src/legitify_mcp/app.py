"""Application context assembly."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from legitify_mcp.config import Settings, load_settings
from legitify_mcp.engine import AttestationEngine, ReviewDefaults
from legitify_mcp.policy.loader import load_policy
from legitify_mcp.policy.models import PolicyCatalog
from legitify_mcp.store.base import LogStore
from legitify_mcp.store.jsonl import JsonlLogStore


@dataclass
class AppContext:
    """Application-wide dependency container.

    Built once at startup and cached for the lifetime of the process.
    """

    settings: Settings
    store: LogStore
    policy: PolicyCatalog
    engine: AttestationEngine


def build_app_context(settings: Settings, store: LogStore | None = None) -> AppContext:
    policy = load_policy(settings.policy.path)
    if store is None:
        store = JsonlLogStore(
            settings.storage.queue_dir,
            requests_path=settings.storage.resolved_requests_path,
            receipts_path=settings.storage.resolved_receipts_path,
            fsync=settings.storage.fsync,
        )
    engine = AttestationEngine(
        store,
        policy,
        defaults=ReviewDefaults(
            reviewed_by=settings.review.default_reviewer,
            scope=settings.review.default_scope,
        ),
    )
    return AppContext(settings=settings, store=store, policy=policy, engine=engine)


@lru_cache(maxsize=1)
def get_app_context() -> AppContext:
    """Get or create the cached application context."""
    return build_app_context(load_settings())
