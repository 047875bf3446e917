"""Search adapter – InMemorySearchIndex."""
from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from typing import Any

from catalog_sync.kernel.catalog import Filter, SearchDocument, SearchHit, SearchIndex, SearchQuery, SearchResult
from catalog_sync.kernel.errors import DocumentRejectedError


def _matches_filter(fields: dict[str, Any], f: Filter) -> bool:
    val = fields.get(f.field)
    if f.op == "eq":
        return val == f.value
    if val is None:
        return False
    return val >= f.value if f.op == "gte" else val <= f.value


def _matches_terms(fields: dict[str, Any], terms: str) -> bool:
    haystack = " ".join(str(v) for v in fields.values() if v is not None).lower()
    return all(term in haystack for term in terms.lower().split())


class InMemorySearchIndex(SearchIndex):
    """Dict-backed index with the same version fencing as the real engine.

    Used by tests and single-process deployments.
    """

    def __init__(self) -> None:
        self._docs: dict[str, SearchDocument] = {}
        self._lock = asyncio.Lock()

    async def upsert(self, document: SearchDocument) -> None:
        async with self._lock:
            stored = self._docs.get(document.id)
            if stored is not None and document.version < stored.version:
                raise DocumentRejectedError(document.id, document.version, stored.version)
            self._docs[document.id] = document

    async def delete(self, listing_id: str) -> None:
        async with self._lock:
            self._docs.pop(listing_id, None)

    async def get(self, listing_id: str) -> SearchDocument | None:
        return self._docs.get(listing_id)

    async def versions(self, listing_ids: Iterable[str]) -> dict[str, int]:
        return {i: self._docs[i].version for i in listing_ids if i in self._docs}

    async def search(self, query: SearchQuery) -> SearchResult[SearchHit]:
        t0 = time.monotonic()
        matches = [
            doc
            for doc in self._docs.values()
            if (not query.terms or _matches_terms(doc.fields, query.terms))
            and all(_matches_filter(doc.fields, f) for f in query.filters)
        ]
        matches.sort(key=lambda d: d.id)
        for sf in reversed(query.sort):
            present = [d for d in matches if d.fields.get(sf.field) is not None]
            missing = [d for d in matches if d.fields.get(sf.field) is None]
            present.sort(key=lambda d: d.fields[sf.field], reverse=(sf.direction == "desc"))
            matches = present + missing

        page = matches[query.offset: query.offset + query.page_size]
        return SearchResult(
            items=[SearchHit(id=d.id, version=d.version, fields=dict(d.fields)) for d in page],
            total=len(matches),
            page=query.page,
            page_size=query.page_size,
            took_ms=int((time.monotonic() - t0) * 1000),
        )

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def documents(self) -> dict[str, SearchDocument]:
        return dict(self._docs)

    def lose(self, listing_id: str) -> None:
        """Drop a document behind the reconciler's back (simulated data loss)."""
        self._docs.pop(listing_id, None)

    def plant(self, document: SearchDocument) -> None:
        """Store *document* bypassing version fencing."""
        self._docs[document.id] = document

    def clear(self) -> None:
        self._docs.clear()


__all__ = ["InMemorySearchIndex"]
