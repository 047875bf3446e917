"""Testing support – in-memory service wiring."""
from __future__ import annotations

from datetime import timedelta

from catalog_sync.adapters.search import InMemorySearchIndex
from catalog_sync.bootstrap import CatalogServices, assemble
from catalog_sync.config import CatalogSyncSettings
from catalog_sync.kernel.catalog import SearchIndex
from catalog_sync.kernel.time import Clock
from catalog_sync.testing.fakes import FakeClock, InMemoryListingStore, InMemoryOutboxRepository


def build_in_memory_services(
    settings: CatalogSyncSettings | None = None,
    *,
    clock: Clock | None = None,
    index: SearchIndex | None = None,
) -> CatalogServices:
    """Full service graph over in-memory store, outbox and index.

    The reconciler is not started unless ``settings.sync_enabled`` is set;
    tests usually drive it with ``drain()``.
    """
    settings = settings or CatalogSyncSettings(sync_enabled=False)
    clock = clock or FakeClock()
    outbox = InMemoryOutboxRepository(clock, claim_lease=timedelta(seconds=settings.claim_lease_seconds))
    store = InMemoryListingStore(outbox, clock)
    return assemble(
        settings,
        store=store,
        outbox=outbox,
        index=index or InMemorySearchIndex(),
        clock=clock,
    )


__all__ = ["build_in_memory_services"]
