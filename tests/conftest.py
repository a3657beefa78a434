"""Pytest fixtures: a fresh in-memory SQLite database per test."""

import logging
from typing import AsyncGenerator, List

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from advanced_repository.db.base import Base
from tests.models import Widget, WidgetRepository

logger = logging.getLogger(__name__)

SEED_COUNT = 10


def seed_widgets() -> List[Widget]:
    """widget-01 .. widget-10, price i*10, even-numbered widgets active."""
    return [
        Widget(name=f"widget-{i:02d}", price=i * 10, active=i % 2 == 0)
        for i in range(1, SEED_COUNT + 1)
    ]


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def seeded(session_maker: async_sessionmaker[AsyncSession]) -> None:
    async with session_maker() as session:
        session.add_all(seed_widgets())
        await session.commit()


@pytest_asyncio.fixture
async def session(
    session_maker: async_sessionmaker[AsyncSession], seeded: None
) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session
        await session.rollback()
        logger.info("Rolled back test database session")


@pytest.fixture
def repo(session: AsyncSession) -> WidgetRepository:
    return WidgetRepository(session)


@pytest.fixture
def statements(engine: AsyncEngine):
    """Collect every SQL statement sent to the database while the test runs."""
    captured: List[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        captured.append(statement)

    event.listen(engine.sync_engine, "before_cursor_execute", _record)
    yield captured
    event.remove(engine.sync_engine, "before_cursor_execute", _record)


async def fetch_widget(session_maker: async_sessionmaker[AsyncSession], widget_id: int):
    """Read a widget through an independent session, i.e. what is committed."""
    async with session_maker() as other:
        return await other.get(Widget, widget_id)
