"""SQLAlchemy adapter – SqlAlchemySessionFactory."""
from __future__ import annotations

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from catalog_sync.adapters.sqlalchemy.models import Base


class SqlAlchemySessionFactory:
    """Creates async SQLAlchemy sessions from an engine URL."""

    def __init__(self, database_url: str, **engine_kwargs: Any) -> None:
        self._engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(self._engine, class_=AsyncSession, expire_on_commit=False)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def __call__(self) -> AsyncSession:
        return self._session_factory()

    async def create_tables(self) -> None:
        await create_tables(self._engine)

    async def ping(self) -> bool:
        async with self._engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def dispose(self) -> None:
        await self._engine.dispose()


async def create_tables(engine: AsyncEngine) -> None:
    """Create the ``listings`` and ``listing_outbox`` tables if missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


__all__ = ["SqlAlchemySessionFactory", "create_tables"]
