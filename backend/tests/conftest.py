"""Shared fixtures: in-memory SQLite database."""
import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import csv_importer.models  # noqa: F401  registers Contact on Base.metadata
from csv_importer.db.base import Base
from csv_importer.models.contact import Contact


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def count_contacts(session_factory):
    """Count rows through a fresh session so uncommitted work is invisible."""
    async def _count() -> int:
        async with session_factory() as session:
            result = await session.execute(select(func.count()).select_from(Contact))
            return result.scalar_one()
    return _count
