"""FastAPI adapter – CatalogExceptionMapper."""
from __future__ import annotations

from typing import Any, Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from catalog_sync.kernel.errors import (
    AuthenticationError,
    AuthorizationError,
    BaseError,
    ConflictError,
    DomainError,
    InfrastructureError,
    NotFoundError,
    ValidationError,
)
from catalog_sync.observability.logging import get_logger

_log = get_logger(__name__)


class CatalogExceptionMapper:
    """Register error -> HTTP status mappings on a FastAPI app.

    Error body schema::

        {"code": "version_conflict", "message": "...", "detail": {...}}

    Mappings
    --------
    ``ValidationError``     -> 400
    ``AuthenticationError`` -> 401 (with ``WWW-Authenticate: Bearer``)
    ``AuthorizationError``  -> 403
    ``NotFoundError``       -> 404
    ``ConflictError``       -> 409
    ``DomainError``         -> 422
    ``InfrastructureError`` -> 503
    """

    def __init__(self) -> None:
        # ORDER MATTERS: more-specific subtypes first
        self._map: list[tuple[type[BaseError], int]] = [
            (ValidationError, 400),
            (NotFoundError, 404),
            (ConflictError, 409),
            (AuthenticationError, 401),
            (AuthorizationError, 403),
            (InfrastructureError, 503),
            (DomainError, 422),
        ]

    def status_for(self, exc: BaseException) -> int:
        for exc_type, status in self._map:
            if isinstance(exc, exc_type):
                return status
        return 500

    def register(self, app: FastAPI) -> None:
        """Register all error handlers on *app*."""

        def make_handler(code: int) -> Callable[[Request, Any], Any]:
            async def handler(request: Request, exc: BaseError) -> JSONResponse:
                body = exc.to_dict(include_cause=False)
                headers = {"WWW-Authenticate": "Bearer"} if code == 401 else None
                if code >= 500:
                    _log.error("http.infrastructure_error", path=request.url.path, code=exc.code)
                return JSONResponse(status_code=code, content=body, headers=headers)

            return handler

        for exc_type, status in self._map:
            app.add_exception_handler(exc_type, make_handler(status))
        app.add_exception_handler(RequestValidationError, self._request_validation_handler)

    @staticmethod
    async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: ARG004
        errors = [
            {"field": ".".join(str(p) for p in err.get("loc", ())[1:]) or None, "error": err.get("msg")}
            for err in exc.errors()
        ]
        body = ValidationError("Invalid request", errors=errors).to_dict()
        return JSONResponse(status_code=400, content=body)


__all__ = ["CatalogExceptionMapper"]
