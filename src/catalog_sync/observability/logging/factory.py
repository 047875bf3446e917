"""Observability – structlog configuration and logger lookup."""
from __future__ import annotations

import logging
from typing import Any

import structlog

# Keys whose values never reach a log sink.
SENSITIVE_FIELDS: frozenset[str] = frozenset({"token", "authorization", "secret", "password", "signing_keys"})
REDACTED = "[REDACTED]"


def redact_sensitive(logger: Any, method: Any, event_dict: dict[str, Any]) -> dict[str, Any]:  # noqa: ARG001
    """structlog processor replacing sensitive values with ``[REDACTED]``."""
    for key in list(event_dict):
        if key.lower() in SENSITIVE_FIELDS:
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(level: int | str = logging.INFO, *, json: bool = True) -> None:
    """Route structlog and stdlib logging through one JSON (or console) handler."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    shared_processors: list[Any] = [
        redact_sensitive,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    renderer: Any = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    """Return a structlog logger, optionally with *initial_values* bound."""
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


__all__ = ["REDACTED", "SENSITIVE_FIELDS", "configure_logging", "get_logger", "redact_sensitive"]
