"""Testing fakes – in-memory doubles for the kernel ports."""
from catalog_sync.testing.fakes.clock import FakeClock
from catalog_sync.testing.fakes.outbox import InMemoryOutboxRepository
from catalog_sync.testing.fakes.search import FlakySearchIndex
from catalog_sync.testing.fakes.store import InMemoryListingStore
from catalog_sync.testing.fakes.tokens import TokenSigner

__all__ = [
    "FakeClock",
    "FlakySearchIndex",
    "InMemoryListingStore",
    "InMemoryOutboxRepository",
    "TokenSigner",
]
