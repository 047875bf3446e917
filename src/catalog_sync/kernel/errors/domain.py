"""Domain errors – listing rules, missing listings and lost optimistic races."""

from __future__ import annotations

from typing import Any

from catalog_sync.kernel.errors.base import BaseError


class DomainError(BaseError):
    """Raised when a domain rule is violated."""

    default_code = "domain_error"


class ValidationError(DomainError):
    """Input data does not meet validation rules.

    ``errors`` is a list of field-level validation failures.
    """

    default_code = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.errors: list[dict[str, Any]] = errors or []

    def to_dict(self, *, include_cause: bool = True) -> dict[str, Any]:
        base = super().to_dict(include_cause=include_cause)
        base["errors"] = self.errors
        return base


class NotFoundError(DomainError):
    """The requested resource does not exist."""

    default_code = "not_found"

    def __init__(
        self,
        resource: str,
        identifier: Any = None,
        **kwargs: Any,
    ) -> None:
        msg = f"{resource} not found"
        if identifier is not None:
            msg = f"{resource} '{identifier}' not found"
        kwargs.setdefault("detail", {"resource": resource, "id": identifier})
        super().__init__(msg, **kwargs)
        self.resource = resource
        self.identifier = identifier


class ConflictError(DomainError):
    """The operation conflicts with existing state."""

    default_code = "conflict"


class VersionConflictError(ConflictError):
    """A write was based on a listing version that is no longer current.

    The caller must re-read the listing and decide again; the write is never
    retried on its behalf.
    """

    default_code = "version_conflict"

    def __init__(
        self,
        listing_id: str,
        expected_version: int,
        actual_version: int | None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            f"Listing '{listing_id}' is at version {actual_version}, "
            f"write expected version {expected_version}",
            detail={
                "listing_id": listing_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
            **kwargs,
        )
        self.listing_id = listing_id
        self.expected_version = expected_version
        self.actual_version = actual_version


__all__ = [
    "ConflictError",
    "DomainError",
    "NotFoundError",
    "ValidationError",
    "VersionConflictError",
]
