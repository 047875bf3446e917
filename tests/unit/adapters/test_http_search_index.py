"""Unit tests – Elasticsearch/OpenSearch index adapter over a mocked transport."""
from __future__ import annotations

import asyncio
import json

import httpx
import pytest
import respx
import tenacity

from catalog_sync.adapters.search import HttpSearchIndex
from catalog_sync.adapters.search.http import build_search_body
from catalog_sync.kernel.catalog import Filter, SearchDocument, SearchQuery, SortField
from catalog_sync.kernel.errors import DocumentRejectedError, SyncError, TransientSyncError
from catalog_sync.resilience.retry import TenacityRetryPolicy

BASE = "http://search.test:9200"


def _index() -> HttpSearchIndex:
    retry = TenacityRetryPolicy(
        max_attempts=2,
        retry_on=(httpx.ConnectError, httpx.ReadError, httpx.RemoteProtocolError),
        wait=tenacity.wait_none(),
    )
    return HttpSearchIndex(BASE, "listings", timeout=1.0, transport_retry=retry)


def _doc(version: int = 2) -> SearchDocument:
    return SearchDocument(id="l-1", version=version, fields={"title": "Bike", "price": 50.0})


class TestUpsert:
    @respx.mock
    def test_sends_external_version(self) -> None:
        route = respx.put(f"{BASE}/listings/_doc/l-1").mock(return_value=httpx.Response(201, json={"result": "created"}))
        asyncio.run(_index().upsert(_doc()))
        request = route.calls.last.request
        assert request.url.params["version"] == "2"
        assert request.url.params["version_type"] == "external_gte"
        assert json.loads(request.content) == {"title": "Bike", "price": 50.0}

    @respx.mock
    def test_conflict_maps_to_rejection(self) -> None:
        body = {
            "error": {
                "type": "version_conflict_engine_exception",
                "reason": "[l-1]: version conflict, current version [5] is higher than or equal to the one provided [2]",
            },
            "status": 409,
        }
        respx.put(f"{BASE}/listings/_doc/l-1").mock(return_value=httpx.Response(409, json=body))
        with pytest.raises(DocumentRejectedError) as info:
            asyncio.run(_index().upsert(_doc()))
        assert info.value.stored_version == 5
        assert info.value.version == 2

    @pytest.mark.parametrize("status", [429, 500, 503])
    @respx.mock
    def test_overload_is_transient(self, status: int) -> None:
        respx.put(f"{BASE}/listings/_doc/l-1").mock(return_value=httpx.Response(status))
        with pytest.raises(TransientSyncError):
            asyncio.run(_index().upsert(_doc()))

    @respx.mock
    def test_other_client_error_is_sync_error(self) -> None:
        respx.put(f"{BASE}/listings/_doc/l-1").mock(return_value=httpx.Response(400, json={"error": "mapping"}))
        with pytest.raises(SyncError) as info:
            asyncio.run(_index().upsert(_doc()))
        assert not isinstance(info.value, TransientSyncError)
        assert info.value.detail["status_code"] == 400

    @respx.mock
    def test_dropped_connection_retried_once(self) -> None:
        route = respx.put(f"{BASE}/listings/_doc/l-1").mock(
            side_effect=[httpx.ConnectError("refused"), httpx.Response(200, json={"result": "updated"})]
        )
        asyncio.run(_index().upsert(_doc()))
        assert route.call_count == 2

    @respx.mock
    def test_unreachable_is_transient(self) -> None:
        respx.put(f"{BASE}/listings/_doc/l-1").mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(TransientSyncError):
            asyncio.run(_index().upsert(_doc()))

    @respx.mock
    def test_timeout_is_transient(self) -> None:
        route = respx.put(f"{BASE}/listings/_doc/l-1").mock(side_effect=httpx.ReadTimeout("slow"))
        with pytest.raises(TransientSyncError):
            asyncio.run(_index().upsert(_doc()))
        assert route.call_count == 1


class TestDeleteAndRead:
    @respx.mock
    def test_delete_of_absent_document_succeeds(self) -> None:
        respx.delete(f"{BASE}/listings/_doc/l-1").mock(return_value=httpx.Response(404, json={"result": "not_found"}))
        asyncio.run(_index().delete("l-1"))

    @respx.mock
    def test_get(self) -> None:
        respx.get(f"{BASE}/listings/_doc/l-1").mock(
            return_value=httpx.Response(
                200, json={"_id": "l-1", "_version": 4, "found": True, "_source": {"title": "Bike"}}
            )
        )
        doc = asyncio.run(_index().get("l-1"))
        assert doc == SearchDocument(id="l-1", version=4, fields={"title": "Bike"})

    @respx.mock
    def test_get_missing(self) -> None:
        respx.get(f"{BASE}/listings/_doc/l-1").mock(return_value=httpx.Response(404, json={"found": False}))
        assert asyncio.run(_index().get("l-1")) is None

    @respx.mock
    def test_versions_uses_mget(self) -> None:
        route = respx.post(f"{BASE}/listings/_mget").mock(
            return_value=httpx.Response(
                200,
                json={"docs": [{"_id": "a", "_version": 3, "found": True}, {"_id": "b", "found": False}]},
            )
        )
        assert asyncio.run(_index().versions(["a", "b"])) == {"a": 3}
        assert json.loads(route.calls.last.request.content) == {"ids": ["a", "b"]}

    def test_versions_of_nothing_skips_request(self) -> None:
        assert asyncio.run(_index().versions([])) == {}


class TestSearch:
    @respx.mock
    def test_search_maps_hits(self) -> None:
        respx.post(f"{BASE}/listings/_search").mock(
            return_value=httpx.Response(
                200,
                json={
                    "hits": {
                        "total": {"value": 41, "relation": "eq"},
                        "hits": [{"_id": "a", "_version": 7, "_source": {"title": "Oak table"}}],
                    }
                },
            )
        )
        result = asyncio.run(_index().search(SearchQuery(terms="table", page=2, page_size=1)))
        assert result.total == 41
        assert [(h.id, h.version) for h in result.items] == [("a", 7)]
        assert result.page == 2

    def test_search_body(self) -> None:
        query = SearchQuery(
            terms="oak table",
            filters=[Filter("status", "active"), Filter("price", 10.0, "gte"), Filter("price", 100.0, "lte")],
            sort=[SortField("price", "desc")],
            page=3,
            page_size=10,
        )
        body = build_search_body(query)
        assert body["from"] == 20
        assert body["size"] == 10
        assert body["version"] is True
        bool_query = body["query"]["bool"]
        assert bool_query["must"][0]["multi_match"]["query"] == "oak table"
        assert {"term": {"status": "active"}} in bool_query["filter"]
        assert {"range": {"price": {"gte": 10.0}}} in bool_query["filter"]
        assert {"range": {"price": {"lte": 100.0}}} in bool_query["filter"]
        assert "must_not" not in bool_query
        assert body["sort"] == [{"price": {"order": "desc", "missing": "_last"}}]

    def test_empty_terms_match_all(self) -> None:
        body = build_search_body(SearchQuery())
        assert body["query"]["bool"] == {"must": [{"match_all": {}}]}
        assert "sort" not in body


class TestAdmin:
    @respx.mock
    def test_ping(self) -> None:
        respx.get(f"{BASE}/").mock(return_value=httpx.Response(200, json={"tagline": "You Know, for Search"}))
        assert asyncio.run(_index().ping()) is True

    @respx.mock
    def test_ping_unreachable(self) -> None:
        respx.get(f"{BASE}/").mock(side_effect=httpx.ConnectError("refused"))
        assert asyncio.run(_index().ping()) is False

    @respx.mock
    def test_create_index_existing(self) -> None:
        respx.put(f"{BASE}/listings").mock(
            return_value=httpx.Response(400, json={"error": {"type": "resource_already_exists_exception"}})
        )
        assert asyncio.run(_index().create_index()) is False

    @respx.mock
    def test_create_index(self) -> None:
        route = respx.put(f"{BASE}/listings").mock(return_value=httpx.Response(200, json={"acknowledged": True}))
        assert asyncio.run(_index().create_index()) is True
        assert "mappings" in json.loads(route.calls.last.request.content)
