"""Pytest configuration and fixtures for pnlplan tests.

Provides an in-memory database, a statement store and a default scope.
"""

from __future__ import annotations

import os

# Must be set before pnlplan.config is first read
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pnlplan.config import ReconcileConfig
from pnlplan.db.models import Base
from pnlplan.db.statements import StatementStore
from pnlplan.models import StatementScope


@pytest.fixture
def scope() -> StatementScope:
    """Default statement scope."""
    return StatementScope(branch_id=7, department="maintenance", year=2025)


@pytest_asyncio.fixture()
async def db_session() -> AsyncSession:
    """Create in-memory database for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest.fixture
def store(db_session: AsyncSession) -> StatementStore:
    """Statement store with small batches so batching paths are exercised."""
    return StatementStore(db_session, ReconcileConfig(update_concurrency=2, insert_batch_size=2))
