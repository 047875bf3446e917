"""Kernel errors – BaseError."""
from __future__ import annotations

import json
from typing import Any


class BaseError(Exception):
    """Root of every error raised by catalog_sync.

    ``code`` is the stable slug clients and operators match on; ``detail``
    holds JSON-safe context such as listing ids and versions. ``cause`` is
    kept for logs only and is left out of anything sent to callers.
    """

    default_code: str = "base_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        detail: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail: dict[str, Any] = dict(detail or {})
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self, *, include_cause: bool = True) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message, "detail": self.detail}
        if include_cause and self.cause is not None:
            payload["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return payload


__all__ = ["BaseError"]
