"""Infrastructure errors – search index synchronization failures."""

from __future__ import annotations

from typing import Any

from catalog_sync.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not a business rule violation."""

    default_code = "infrastructure_error"


class SyncError(InfrastructureError):
    """Base for failures while propagating a listing change to the index."""

    default_code = "sync_error"


class TransientSyncError(SyncError):
    """Index unreachable, overloaded or timed out; the event is retried."""

    default_code = "transient_sync_error"


class PermanentSyncError(SyncError):
    """The retry window for an outbox event is exhausted.

    The committed store write is not rolled back; the event is parked in the
    ``failed`` state for operator attention.
    """

    default_code = "permanent_sync_error"

    def __init__(
        self,
        message: str,
        *,
        sequence: int | None = None,
        listing_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.sequence = sequence
        self.listing_id = listing_id


class DocumentRejectedError(SyncError):
    """The index refused an upsert older than the document it holds."""

    default_code = "document_rejected"

    def __init__(
        self,
        listing_id: str,
        version: int,
        stored_version: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            f"Upsert of '{listing_id}' at version {version} rejected; "
            f"index holds version {stored_version}",
            detail={
                "listing_id": listing_id,
                "version": version,
                "stored_version": stored_version,
            },
            **kwargs,
        )
        self.listing_id = listing_id
        self.version = version
        self.stored_version = stored_version


__all__ = [
    "DocumentRejectedError",
    "InfrastructureError",
    "PermanentSyncError",
    "SyncError",
    "TransientSyncError",
]
