"""Kernel catalog – listing store and search index ports."""
from __future__ import annotations

import abc
from collections.abc import Iterable
from typing import TYPE_CHECKING

from catalog_sync.kernel.catalog.listing import Listing, ListingChanges, ListingVersion, NewListing
from catalog_sync.kernel.catalog.search import SearchDocument, SearchHit, SearchQuery, SearchResult

if TYPE_CHECKING:
    from catalog_sync.kernel.messaging.outbox import CommittedChange, OutboxEvent


class ListingStore(abc.ABC):
    """Port: system of record for listings.

    Every successful mutation bumps the listing version by exactly one and
    appends exactly one outbox event in the same transaction.
    """

    @abc.abstractmethod
    async def get(self, listing_id: str) -> Listing:
        """Return the live listing; raise ``NotFoundError`` if absent or deleted."""

    @abc.abstractmethod
    async def create(self, owner_id: str, new_listing: NewListing) -> CommittedChange: ...

    @abc.abstractmethod
    async def write(
        self,
        listing_id: str,
        expected_version: int,
        changes: ListingChanges,
    ) -> CommittedChange:
        """Compare-and-set update.

        Raises ``NotFoundError`` when the listing is absent or deleted and
        ``VersionConflictError`` when *expected_version* is stale.
        """

    @abc.abstractmethod
    async def delete(self, listing_id: str, expected_version: int) -> CommittedChange:
        """Tombstone the listing under the same compare-and-set rule as ``write``."""

    @abc.abstractmethod
    async def sample_versions(self, after_id: str | None, limit: int) -> list[ListingVersion]:
        """Keyset page of version stamps ordered by listing id, tombstones included."""

    @abc.abstractmethod
    async def enqueue_resync(self, listing_id: str, *, replace: bool = False) -> list[OutboxEvent]:
        """Append synthetic events that re-send the current snapshot.

        With *replace* a delete precedes the upsert so an index document
        ahead of the store is dropped first.
        """

    async def ping(self) -> bool:
        return True


class SearchIndex(abc.ABC):
    """Port: eventually consistent search projection of the listing store."""

    @abc.abstractmethod
    async def upsert(self, document: SearchDocument) -> None:
        """Store *document* unless the index holds a newer version.

        Raises ``DocumentRejectedError`` when ``document.version`` is lower
        than the stored version. Equal versions are re-applied.
        """

    @abc.abstractmethod
    async def delete(self, listing_id: str) -> None:
        """Remove the document; absent documents are not an error."""

    @abc.abstractmethod
    async def get(self, listing_id: str) -> SearchDocument | None: ...

    @abc.abstractmethod
    async def versions(self, listing_ids: Iterable[str]) -> dict[str, int]:
        """Indexed version per id; ids without a document are omitted."""

    @abc.abstractmethod
    async def search(self, query: SearchQuery) -> SearchResult[SearchHit]: ...

    async def ping(self) -> bool:
        return True


__all__ = ["ListingStore", "SearchIndex"]
