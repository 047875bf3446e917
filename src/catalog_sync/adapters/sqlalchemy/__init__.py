"""SQLAlchemy adapter – listing store, change outbox and session factory."""
from catalog_sync.adapters.sqlalchemy.listing_store import SqlAlchemyListingStore
from catalog_sync.adapters.sqlalchemy.models import Base, ListingRow, OutboxRow
from catalog_sync.adapters.sqlalchemy.outbox import SqlAlchemyOutboxRepository
from catalog_sync.adapters.sqlalchemy.session import SqlAlchemySessionFactory, create_tables

__all__ = [
    "Base",
    "ListingRow",
    "OutboxRow",
    "SqlAlchemyListingStore",
    "SqlAlchemyOutboxRepository",
    "SqlAlchemySessionFactory",
    "create_tables",
]
