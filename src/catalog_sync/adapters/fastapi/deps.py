"""FastAPI adapter – request dependencies."""
from typing import Any

from fastapi import Header, Request

from catalog_sync.kernel.errors import MalformedTokenError


def get_services(request: Request) -> Any:
    """The ``CatalogServices`` container attached by ``create_app``."""
    return request.app.state.services


def bearer_token(authorization: str | None = Header(default=None)) -> str:
    """Extract the token from ``Authorization: Bearer <token>``."""
    if not authorization:
        raise MalformedTokenError("Missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise MalformedTokenError("Authorization header must use the Bearer scheme")
    return token.strip()


_ERROR_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "code": {"type": "string"},
        "message": {"type": "string"},
        "detail": {"type": "object"},
    },
    "required": ["code", "message"],
}

_STATUS_DESCRIPTIONS: dict[int, str] = {
    400: "Validation error",
    401: "Missing, malformed, expired or untrusted token",
    403: "Principal may not perform this action",
    404: "Listing not found",
    409: "Listing version has moved on; re-read and retry",
    503: "Store or index unavailable",
}


def error_responses(*codes: int) -> dict[int | str, dict[str, Any]]:
    """OpenAPI ``responses`` entries for the given error status codes."""
    return {
        code: {
            "description": _STATUS_DESCRIPTIONS.get(code, "Error"),
            "content": {"application/json": {"schema": _ERROR_SCHEMA}},
        }
        for code in codes
    }


__all__ = ["bearer_token", "error_responses", "get_services"]
