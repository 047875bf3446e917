"""Search adapters – in-memory and Elasticsearch/OpenSearch indexes."""
from catalog_sync.adapters.search.http import HttpSearchIndex
from catalog_sync.adapters.search.memory import InMemorySearchIndex

__all__ = ["HttpSearchIndex", "InMemorySearchIndex"]
