"""Application access – AccessGuard, Action, AccessDecision."""
from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from enum import Enum

from catalog_sync.kernel.catalog import Listing
from catalog_sync.kernel.errors import AuthorizationError
from catalog_sync.kernel.security import Principal
from catalog_sync.observability.logging import AccessAuditLogger, AuditOutcome


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    OPERATE = "operate"


@dataclasses.dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


_ALLOW = AccessDecision(allowed=True)


class AccessGuard:
    """Ownership-based authorization of listing mutations.

    Policy, first match wins:

    1. a principal holding an elevated role may do anything;
    2. any authenticated principal may create (and becomes the owner);
    3. operator actions on the outbox need an elevated role;
    4. the owner may update or delete their own listing;
    5. everything else is denied.

    Every decision goes to the audit log.
    """

    def __init__(
        self,
        elevated_roles: Iterable[str] = ("admin",),
        audit: AccessAuditLogger | None = None,
    ) -> None:
        self._elevated = frozenset(elevated_roles)
        self._audit = audit or AccessAuditLogger()

    @property
    def elevated_roles(self) -> frozenset[str]:
        return self._elevated

    def authorize(
        self,
        principal: Principal,
        action: Action,
        listing: Listing | None = None,
    ) -> AccessDecision:
        decision = self._decide(principal, Action(action), listing)
        self._audit.log_decision(
            subject=principal.subject,
            action=Action(action).value,
            resource=listing.id if listing is not None else None,
            outcome=AuditOutcome.ALLOWED if decision.allowed else AuditOutcome.DENIED,
            reason=decision.reason,
        )
        return decision

    def require(
        self,
        principal: Principal,
        action: Action,
        listing: Listing | None = None,
    ) -> None:
        """Raise ``AuthorizationError`` unless *principal* may perform *action*."""
        decision = self.authorize(principal, action, listing)
        if not decision.allowed:
            raise AuthorizationError(
                decision.reason or "Access denied",
                action=Action(action).value,
                detail={"action": Action(action).value, "listing_id": listing.id if listing else None},
            )

    def _decide(self, principal: Principal, action: Action, listing: Listing | None) -> AccessDecision:
        if principal.has_any_role(self._elevated):
            return _ALLOW
        if action is Action.CREATE:
            return _ALLOW
        if action is Action.OPERATE:
            return AccessDecision(False, "operator actions require an elevated role")
        if listing is None:
            return AccessDecision(False, f"{action.value} requires a target listing")
        if listing.is_owned_by(principal.subject):
            return _ALLOW
        return AccessDecision(False, f"principal may not {action.value} a listing it does not own")


__all__ = ["AccessDecision", "AccessGuard", "Action"]
