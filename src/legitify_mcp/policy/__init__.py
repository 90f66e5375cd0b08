"""Policy catalog."""

from legitify_mcp.policy.loader import load_policy
from legitify_mcp.policy.models import PolicyCatalog, PolicyGuidance

__all__ = ["PolicyCatalog", "PolicyGuidance", "load_policy"]
