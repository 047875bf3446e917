"""Search adapter – HttpSearchIndex for Elasticsearch/OpenSearch over httpx."""
from __future__ import annotations

import re
import time
from collections.abc import Iterable
from typing import Any

import httpx

from catalog_sync.kernel.catalog import Filter, SearchDocument, SearchHit, SearchIndex, SearchQuery, SearchResult
from catalog_sync.kernel.errors import DocumentRejectedError, SyncError, TransientSyncError
from catalog_sync.observability.logging import get_logger
from catalog_sync.resilience.retry import TenacityRetryPolicy

_log = get_logger(__name__)

_CURRENT_VERSION = re.compile(r"current version \[(\d+)\]")

# Explicit mapping so filters can use exact term matches.
LISTING_MAPPINGS: dict[str, Any] = {
    "properties": {
        "title": {"type": "text"},
        "price": {"type": "double"},
        "status": {"type": "keyword"},
        "category": {"type": "keyword"},
        "owner_id": {"type": "keyword"},
    }
}

_RETRYABLE_TRANSPORT = (httpx.ConnectError, httpx.ReadError, httpx.RemoteProtocolError)


def _filter_clause(f: Filter) -> dict[str, Any]:
    if f.op == "eq":
        return {"term": {f.field: f.value}}
    return {"range": {f.field: {f.op: f.value}}}


def build_search_body(query: SearchQuery) -> dict[str, Any]:
    filters = [_filter_clause(f) for f in query.filters]
    must: list[dict[str, Any]] = (
        [{"multi_match": {"query": query.terms, "fields": ["title^2", "category"], "operator": "and"}}]
        if query.terms
        else [{"match_all": {}}]
    )
    body: dict[str, Any] = {
        "query": {"bool": {"must": must, **({"filter": filters} if filters else {})}},
        "from": query.offset,
        "size": query.page_size,
        "version": True,
        "track_total_hits": True,
    }
    if query.sort:
        body["sort"] = [{sf.field: {"order": sf.direction, "missing": "_last"}} for sf in query.sort]
    return body


class HttpSearchIndex(SearchIndex):
    """Search index backed by the Elasticsearch/OpenSearch REST API.

    Version fencing uses external versioning with ``version_type=external_gte``:
    the engine itself refuses an upsert older than the stored document
    (``409``), and accepts a replay of the same version.

    Status mapping: ``409`` on upsert -> ``DocumentRejectedError``; ``404`` on
    delete -> success; timeouts, transport failures, ``429`` and ``5xx`` ->
    ``TransientSyncError``; any other non-2xx -> ``SyncError``.

    Parameters
    ----------
    base_url:
        Cluster URL, e.g. ``http://localhost:9200``.
    index:
        Index name holding the listing documents.
    timeout:
        Per-request timeout in seconds.
    transport_retry:
        Immediate retries for dropped connections; defaults to three attempts.
    client:
        Pre-built ``httpx.AsyncClient`` (tests inject one bound to a mock).
    """

    def __init__(
        self,
        base_url: str,
        index: str = "listings",
        *,
        timeout: float = 5.0,
        transport_retry: TenacityRetryPolicy | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._index = index
        self._client = client or httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout)
        self._retry = transport_retry or TenacityRetryPolicy(max_attempts=3, retry_on=_RETRYABLE_TRANSPORT)

    async def __aenter__(self) -> HttpSearchIndex:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # SearchIndex port
    # ------------------------------------------------------------------

    async def upsert(self, document: SearchDocument) -> None:
        response = await self._send(
            "PUT",
            f"/{self._index}/_doc/{document.id}",
            params={"version": document.version, "version_type": "external_gte"},
            json=document.fields,
        )
        if response.status_code == 409:
            raise DocumentRejectedError(document.id, document.version, self._stored_version(response))
        self._raise_for_status(response, "upsert")

    async def delete(self, listing_id: str) -> None:
        response = await self._send("DELETE", f"/{self._index}/_doc/{listing_id}")
        if response.status_code == 404:
            return
        self._raise_for_status(response, "delete")

    async def get(self, listing_id: str) -> SearchDocument | None:
        response = await self._send("GET", f"/{self._index}/_doc/{listing_id}")
        if response.status_code == 404:
            return None
        self._raise_for_status(response, "get")
        body = response.json()
        if not body.get("found", True):
            return None
        return SearchDocument(id=body["_id"], version=int(body["_version"]), fields=body.get("_source") or {})

    async def versions(self, listing_ids: Iterable[str]) -> dict[str, int]:
        ids = list(listing_ids)
        if not ids:
            return {}
        response = await self._send(
            "POST", f"/{self._index}/_mget", params={"_source": "false"}, json={"ids": ids}
        )
        if response.status_code == 404:
            return {}
        self._raise_for_status(response, "mget")
        return {
            doc["_id"]: int(doc["_version"])
            for doc in response.json().get("docs", [])
            if doc.get("found")
        }

    async def search(self, query: SearchQuery) -> SearchResult[SearchHit]:
        t0 = time.monotonic()
        response = await self._send("POST", f"/{self._index}/_search", json=build_search_body(query))
        if response.status_code == 404:
            return SearchResult(items=[], total=0, page=query.page, page_size=query.page_size)
        self._raise_for_status(response, "search")
        hits = response.json().get("hits", {})
        total = hits.get("total", 0)
        return SearchResult(
            items=[
                SearchHit(id=h["_id"], version=int(h.get("_version", 0)), fields=h.get("_source") or {})
                for h in hits.get("hits", [])
            ],
            total=total["value"] if isinstance(total, dict) else int(total),
            page=query.page,
            page_size=query.page_size,
            took_ms=int((time.monotonic() - t0) * 1000),
        )

    async def ping(self) -> bool:
        try:
            response = await self._client.get("/")
        except httpx.HTTPError:
            return False
        return response.is_success

    async def create_index(self) -> bool:
        """Create the index with :data:`LISTING_MAPPINGS`; ``False`` if it exists."""
        response = await self._send("PUT", f"/{self._index}", json={"mappings": LISTING_MAPPINGS})
        if response.status_code == 400 and "already_exists" in response.text:
            return False
        self._raise_for_status(response, "create_index")
        _log.info("search.index_created", index=self._index)
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._retry.execute_async(lambda: self._client.request(method, url, **kwargs))
        except httpx.TimeoutException as exc:
            raise TransientSyncError(f"Search index timed out: {method} {url}", cause=exc) from exc
        except httpx.TransportError as exc:
            raise TransientSyncError(f"Search index unreachable: {method} {url}", cause=exc) from exc

    def _raise_for_status(self, response: httpx.Response, operation: str) -> None:
        status = response.status_code
        if response.is_success:
            return
        detail = {"operation": operation, "status_code": status, "index": self._index}
        if status == 429 or status >= 500:
            raise TransientSyncError(f"Search index {operation} failed with HTTP {status}", detail=detail)
        raise SyncError(f"Search index refused {operation} with HTTP {status}", detail=detail)

    @staticmethod
    def _stored_version(response: httpx.Response) -> int | None:
        found = _CURRENT_VERSION.search(response.text)
        return int(found.group(1)) if found else None


__all__ = ["LISTING_MAPPINGS", "HttpSearchIndex", "build_search_body"]
