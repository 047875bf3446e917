"""Application access – listing authorization."""
from catalog_sync.application.access.guard import AccessDecision, AccessGuard, Action

__all__ = ["AccessDecision", "AccessGuard", "Action"]
