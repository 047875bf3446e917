"""Application catalog – listing mutation use case."""
from catalog_sync.application.catalog.service import ListingService, SyncOutcome

__all__ = ["ListingService", "SyncOutcome"]
