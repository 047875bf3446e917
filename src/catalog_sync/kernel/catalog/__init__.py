"""Kernel catalog – listings, search documents and the store/index ports."""
from catalog_sync.kernel.catalog.drift import DriftRecord
from catalog_sync.kernel.catalog.listing import (
    Listing,
    ListingChanges,
    ListingStatus,
    ListingVersion,
    NewListing,
)
from catalog_sync.kernel.catalog.ports import ListingStore, SearchIndex
from catalog_sync.kernel.catalog.search import (
    Filter,
    SearchDocument,
    SearchHit,
    SearchQuery,
    SearchResult,
    SortField,
    listing_fields,
)

__all__ = [
    "DriftRecord",
    "Filter",
    "Listing",
    "ListingChanges",
    "ListingStatus",
    "ListingStore",
    "ListingVersion",
    "NewListing",
    "SearchDocument",
    "SearchHit",
    "SearchIndex",
    "SearchQuery",
    "SearchResult",
    "SortField",
    "listing_fields",
]
