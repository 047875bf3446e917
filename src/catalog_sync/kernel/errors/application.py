"""Application-layer errors – authentication and authorization failures."""

from __future__ import annotations

from typing import Any

from catalog_sync.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    """Cross-cutting application-layer concern."""

    default_code = "application_error"


class AuthenticationError(ApplicationError):
    """The caller could not be identified from its credentials (401)."""

    default_code = "unauthenticated"


class InvalidSignatureError(AuthenticationError):
    """No currently-trusted key verifies the token signature."""

    default_code = "invalid_signature"


class ExpiredTokenError(AuthenticationError):
    """The token's expiry claim lies in the past."""

    default_code = "token_expired"


class MalformedTokenError(AuthenticationError):
    """The token cannot be parsed into the expected claim structure."""

    default_code = "malformed_token"


class TokenNotYetValidError(AuthenticationError):
    """The token's ``nbf`` claim lies in the future."""

    default_code = "token_not_yet_valid"


class AuthorizationError(ApplicationError):
    """Authenticated principal may not perform the action (403)."""

    default_code = "forbidden"

    def __init__(
        self,
        message: str = "Access denied",
        *,
        action: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.action = action


__all__ = [
    "ApplicationError",
    "AuthenticationError",
    "AuthorizationError",
    "ExpiredTokenError",
    "InvalidSignatureError",
    "MalformedTokenError",
    "TokenNotYetValidError",
]
