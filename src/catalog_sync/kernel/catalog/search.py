"""Kernel catalog – search documents, queries and results."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, Literal, TypeVar

if TYPE_CHECKING:
    from catalog_sync.kernel.catalog.listing import Listing

T = TypeVar("T")


def listing_fields(listing: "Listing") -> dict[str, Any]:
    """Denormalised searchable projection of *listing*."""
    return {
        "title": listing.title,
        "price": float(listing.price),
        "status": listing.status.value,
        "category": listing.category,
        "owner_id": listing.owner_id,
    }


@dataclass(frozen=True)
class SearchDocument:
    """Index-side projection of a listing.

    ``version`` mirrors the listing version and fences stale upserts.
    """

    id: str
    version: int
    fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_listing(cls, listing: "Listing") -> SearchDocument:
        return cls(id=listing.id, version=listing.version, fields=listing_fields(listing))


@dataclass(frozen=True)
class Filter:
    """A field-level filter applied to search results."""
    field: str
    value: Any
    op: Literal["eq", "gte", "lte"] = "eq"


@dataclass(frozen=True)
class SortField:
    field: str
    direction: Literal["asc", "desc"] = "asc"


@dataclass
class SearchQuery:
    terms: str = ""
    filters: list[Filter] = field(default_factory=list)
    sort: list[SortField] = field(default_factory=list)
    page: int = 1
    page_size: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True)
class SearchHit:
    """One search result; ``version`` lets clients judge staleness."""
    id: str
    version: int
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchResult(Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int
    took_ms: int = 0

    @property
    def total_pages(self) -> int:
        if self.page_size == 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


__all__ = [
    "Filter",
    "SearchDocument",
    "SearchHit",
    "SearchQuery",
    "SearchResult",
    "SortField",
    "listing_fields",
]
