"""Policy loader for policy.yaml."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from legitify_mcp.policy.models import PolicyCatalog

logger = logging.getLogger(__name__)


def load_policy(path: str | None) -> PolicyCatalog:
    """Load the policy catalog; built-in defaults apply when no path is configured."""
    if path is None:
        return PolicyCatalog()
    policy_path = Path(path)
    if not policy_path.exists():
        raise FileNotFoundError(f"Policy file not found: {policy_path}")
    with policy_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Policy file must contain a mapping: {policy_path}")
    policy = PolicyCatalog.from_yaml(data)
    logger.info("Loaded policy %s from %s", policy.policy_version, policy_path)
    return policy
