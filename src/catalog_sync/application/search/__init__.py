"""Application search – listing search use case."""
from catalog_sync.application.search.service import ListingSearchService, parse_sort

__all__ = ["ListingSearchService", "parse_sort"]
