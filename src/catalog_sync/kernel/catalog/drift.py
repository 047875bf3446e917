"""Kernel catalog – DriftRecord."""
from __future__ import annotations

from dataclasses import dataclass

from catalog_sync.kernel.catalog.listing import ListingVersion


@dataclass(frozen=True)
class DriftRecord:
    """Disagreement between the store and the index for one listing.

    Transient: it only exists to drive a repair event.
    """

    listing_id: str
    store_version: int
    index_version: int | None
    store_deleted: bool = False

    @property
    def index_ahead(self) -> bool:
        """The index holds a version the store never committed."""
        return (
            not self.store_deleted
            and self.index_version is not None
            and self.index_version > self.store_version
        )

    @classmethod
    def detect(cls, stored: ListingVersion, index_version: int | None) -> DriftRecord | None:
        """Return a record when *stored* and *index_version* disagree."""
        if stored.deleted:
            if index_version is None:
                return None
        elif index_version == stored.version:
            return None
        return cls(
            listing_id=stored.listing_id,
            store_version=stored.version,
            index_version=index_version,
            store_deleted=stored.deleted,
        )


__all__ = ["DriftRecord"]
