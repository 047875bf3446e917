"""Testing support – in-memory fakes and a test-only token signer.

Typical wiring::

    from catalog_sync.testing import build_in_memory_services

    services = build_in_memory_services()
"""
from catalog_sync.testing.fakes import (
    FakeClock,
    FlakySearchIndex,
    InMemoryListingStore,
    InMemoryOutboxRepository,
    TokenSigner,
)
from catalog_sync.testing.services import build_in_memory_services

__all__ = [
    "FakeClock",
    "FlakySearchIndex",
    "InMemoryListingStore",
    "InMemoryOutboxRepository",
    "TokenSigner",
    "build_in_memory_services",
]
