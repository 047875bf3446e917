"""Observability – structured logging helpers."""
from catalog_sync.observability.logging.audit import AccessAuditLogger, AuditOutcome
from catalog_sync.observability.logging.factory import (
    REDACTED,
    SENSITIVE_FIELDS,
    configure_logging,
    get_logger,
    redact_sensitive,
)

__all__ = [
    "REDACTED",
    "SENSITIVE_FIELDS",
    "AccessAuditLogger",
    "AuditOutcome",
    "configure_logging",
    "get_logger",
    "redact_sensitive",
]
