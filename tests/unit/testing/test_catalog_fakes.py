"""Unit tests – in-memory doubles and service wiring helpers."""
from __future__ import annotations

import asyncio

import pytest

from catalog_sync.adapters.search import HttpSearchIndex, InMemorySearchIndex
from catalog_sync.bootstrap import build_index
from catalog_sync.config import CatalogSyncSettings
from catalog_sync.kernel.catalog import NewListing, SearchDocument
from catalog_sync.kernel.errors import ConflictError, TransientSyncError
from catalog_sync.kernel.messaging import DeliveryState
from catalog_sync.testing import FakeClock, FlakySearchIndex, build_in_memory_services


class TestInMemoryListingStore:
    def test_duplicate_id_conflicts(self, store) -> None:
        asyncio.run(store.create("alice", NewListing(title="a", price=1, id="same")))
        with pytest.raises(ConflictError):
            asyncio.run(store.create("bob", NewListing(title="b", price=1, id="same")))

    def test_sample_versions_include_tombstones(self, store) -> None:
        change = asyncio.run(store.create("alice", NewListing(title="a", price=1)))
        asyncio.run(store.delete(change.listing.id, 1))
        [stamp] = asyncio.run(store.sample_versions(None, 10))
        assert (stamp.version, stamp.deleted) == (2, True)


class TestInMemoryOutbox:
    def test_sequences_grow(self, store, outbox) -> None:
        for title in ("a", "b", "c"):
            asyncio.run(store.create("alice", NewListing(title=title, price=1)))
        assert [e.sequence for e in outbox.all_events()] == [1, 2, 3]

    def test_returned_events_are_copies(self, store, outbox) -> None:
        asyncio.run(store.create("alice", NewListing(title="a", price=1)))
        [claimed] = asyncio.run(outbox.fetch_batch(1))
        claimed.state = DeliveryState.DELIVERED
        assert outbox.all_events()[0].state is DeliveryState.IN_FLIGHT


class TestFlakySearchIndex:
    def test_fails_then_recovers(self) -> None:
        inner = InMemorySearchIndex()
        flaky = FlakySearchIndex(inner)
        flaky.fail_next(1)
        doc = SearchDocument(id="a", version=1)
        with pytest.raises(TransientSyncError):
            asyncio.run(flaky.upsert(doc))
        asyncio.run(flaky.upsert(doc))
        assert flaky.write_calls == 2
        assert asyncio.run(flaky.get("a")) == doc


class TestServiceWiring:
    def test_in_memory_services_share_one_clock(self) -> None:
        clock = FakeClock()
        services = build_in_memory_services(clock=clock)
        assert services.clock is clock
        assert services.sessions is None
        assert services.settings.sync_enabled is False

    def test_startup_respects_sync_switch(self) -> None:
        services = build_in_memory_services()

        async def scenario() -> bool:
            await services.startup()
            running = services.reconciler.running
            await services.shutdown()
            return running

        assert asyncio.run(scenario()) is False

    def test_build_index_without_url_is_in_memory(self) -> None:
        assert isinstance(build_index(CatalogSyncSettings()), InMemorySearchIndex)

    def test_build_index_with_url(self) -> None:
        index = build_index(CatalogSyncSettings(search_url="http://search.test:9200", index_timeout_seconds=2))
        try:
            assert isinstance(index, HttpSearchIndex)
        finally:
            asyncio.run(index.aclose())

    def test_claim_lease_follows_settings(self) -> None:
        clock = FakeClock()
        services = build_in_memory_services(CatalogSyncSettings(claim_lease_seconds=5, sync_enabled=False), clock=clock)
        asyncio.run(services.store.create("alice", NewListing(title="a", price=1)))
        asyncio.run(services.outbox.fetch_batch(10))
        clock.advance(seconds=6)
        assert len(asyncio.run(services.outbox.fetch_batch(10))) == 1

    def test_lease_not_yet_expired(self) -> None:
        clock = FakeClock()
        services = build_in_memory_services(CatalogSyncSettings(claim_lease_seconds=5, sync_enabled=False), clock=clock)
        asyncio.run(services.store.create("alice", NewListing(title="a", price=1)))
        asyncio.run(services.outbox.fetch_batch(10))
        clock.advance(seconds=4)
        assert asyncio.run(services.outbox.fetch_batch(10)) == []
