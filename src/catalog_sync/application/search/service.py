"""Application search – ListingSearchService."""
from __future__ import annotations

from decimal import Decimal

from catalog_sync.kernel.catalog import (
    Filter,
    ListingStatus,
    SearchHit,
    SearchIndex,
    SearchQuery,
    SearchResult,
    SortField,
)
from catalog_sync.kernel.errors import ValidationError

SORTABLE_FIELDS = frozenset({"price", "title", "category", "status"})
MAX_PAGE_SIZE = 100


def parse_sort(expression: str | None) -> list[SortField]:
    """``"price,-title"`` -> price ascending, then title descending."""
    if not expression:
        return []
    fields: list[SortField] = []
    for part in expression.split(","):
        part = part.strip()
        if not part:
            continue
        direction = "desc" if part.startswith("-") else "asc"
        name = part.lstrip("+-")
        if name not in SORTABLE_FIELDS:
            raise ValidationError(
                "Invalid sort",
                errors=[{"field": "sort", "error": f"cannot sort by {name!r}"}],
            )
        fields.append(SortField(field=name, direction=direction))
    return fields


class ListingSearchService:
    """Read path: queries go to the search index only, never to the store.

    Each hit carries the indexed version so a client can tell how fresh it is.
    """

    def __init__(self, index: SearchIndex) -> None:
        self._index = index

    async def search(
        self,
        terms: str = "",
        *,
        category: str | None = None,
        status: str | None = None,
        min_price: Decimal | float | None = None,
        max_price: Decimal | float | None = None,
        sort: str | None = None,
        page: int = 1,
        size: int = 20,
    ) -> SearchResult[SearchHit]:
        errors = []
        if page < 1:
            errors.append({"field": "page", "error": "must be >= 1"})
        if not 1 <= size <= MAX_PAGE_SIZE:
            errors.append({"field": "size", "error": f"must be between 1 and {MAX_PAGE_SIZE}"})
        if status is not None and status not in {s.value for s in ListingStatus}:
            errors.append({"field": "status", "error": f"unknown status {status!r}"})
        if min_price is not None and max_price is not None and min_price > max_price:
            errors.append({"field": "min_price", "error": "greater than max_price"})
        if errors:
            raise ValidationError("Invalid search query", errors=errors)

        filters: list[Filter] = []
        if category is not None:
            filters.append(Filter("category", category))
        if status is not None:
            filters.append(Filter("status", status))
        if min_price is not None:
            filters.append(Filter("price", float(min_price), "gte"))
        if max_price is not None:
            filters.append(Filter("price", float(max_price), "lte"))
        query = SearchQuery(
            terms=terms.strip(),
            filters=filters,
            sort=parse_sort(sort),
            page=page,
            page_size=size,
        )
        return await self._index.search(query)


__all__ = ["ListingSearchService", "parse_sort"]
