"""Observability – AccessAuditLogger.

A dedicated structured-log sink for authorization decisions.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from catalog_sync.observability.logging.factory import get_logger


class AuditOutcome(str, Enum):
    ALLOWED = "allowed"
    DENIED = "denied"


class AccessAuditLogger:
    """Emits one ``access.allowed`` / ``access.denied`` entry per decision.

    Denials are logged at ``WARNING`` so they pass restrictive level filters;
    grants at ``INFO``.
    """

    def __init__(self, service: str = "catalog-sync", logger: Any = None) -> None:
        self._service = service
        self._log = logger if logger is not None else get_logger("catalog_sync.audit")

    def log_decision(
        self,
        subject: str,
        action: str,
        resource: str | None,
        outcome: AuditOutcome,
        **extra: Any,
    ) -> None:
        entry: dict[str, Any] = {
            "service": self._service,
            "subject": subject,
            "action": action,
            "resource": resource,
            "outcome": outcome.value,
            **extra,
        }
        if outcome is AuditOutcome.DENIED:
            self._log.warning("access.denied", **entry)
        else:
            self._log.info("access.allowed", **entry)


__all__ = ["AccessAuditLogger", "AuditOutcome"]
