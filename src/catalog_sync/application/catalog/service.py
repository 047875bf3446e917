"""Application catalog – ListingService: authenticated listing mutations."""
from __future__ import annotations

import dataclasses

from catalog_sync.application.access import AccessGuard, Action
from catalog_sync.kernel.catalog import ListingChanges, ListingStore, NewListing
from catalog_sync.kernel.messaging import CommittedChange
from catalog_sync.kernel.security import Principal
from catalog_sync.observability.logging import get_logger
from catalog_sync.security.tokens import TokenVerifier

_log = get_logger(__name__)


@dataclasses.dataclass(frozen=True)
class SyncOutcome:
    """Result of a committed mutation.

    The index catches up asynchronously; ``sequence`` identifies the outbox
    event that will carry this version there.
    """

    listing_id: str
    version: int
    sequence: int | None
    deleted: bool = False

    @classmethod
    def from_change(cls, change: CommittedChange) -> SyncOutcome:
        return cls(
            listing_id=change.listing.id,
            version=change.listing.version,
            sequence=change.event.sequence,
            deleted=change.listing.deleted,
        )


class ListingService:
    """Verify, load, authorize, then compare-and-set.

    Each step maps to its own failure: 401, 404, 403 and 409. A version
    conflict is returned to the caller and never retried here.
    """

    def __init__(self, verifier: TokenVerifier, guard: AccessGuard, store: ListingStore) -> None:
        self._verifier = verifier
        self._guard = guard
        self._store = store

    @property
    def verifier(self) -> TokenVerifier:
        return self._verifier

    def use_verifier(self, verifier: TokenVerifier) -> None:
        """Swap in a verifier built on a rotated key ring."""
        self._verifier = verifier

    def authenticate(self, token: str) -> Principal:
        return self._verifier.verify(token)

    async def create(self, token: str, new_listing: NewListing) -> SyncOutcome:
        principal = self.authenticate(token)
        self._guard.require(principal, Action.CREATE)
        change = await self._store.create(principal.subject, new_listing)
        _log.info("listing.created", listing_id=change.listing.id, subject=principal.subject)
        return SyncOutcome.from_change(change)

    async def apply(
        self,
        token: str,
        listing_id: str,
        expected_version: int,
        changes: ListingChanges,
    ) -> SyncOutcome:
        principal = self.authenticate(token)
        listing = await self._store.get(listing_id)
        self._guard.require(principal, Action.UPDATE, listing)
        change = await self._store.write(listing_id, expected_version, changes)
        _log.info(
            "listing.updated",
            listing_id=listing_id,
            version=change.listing.version,
            subject=principal.subject,
        )
        return SyncOutcome.from_change(change)

    async def delete(self, token: str, listing_id: str, expected_version: int) -> SyncOutcome:
        principal = self.authenticate(token)
        listing = await self._store.get(listing_id)
        self._guard.require(principal, Action.DELETE, listing)
        change = await self._store.delete(listing_id, expected_version)
        _log.info(
            "listing.deleted",
            listing_id=listing_id,
            version=change.listing.version,
            subject=principal.subject,
        )
        return SyncOutcome.from_change(change)


__all__ = ["ListingService", "SyncOutcome"]
