"""Engine and session lifecycle helpers."""

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from advanced_repository.core.logging import uow_id_var
from advanced_repository.db import session as db_session
from advanced_repository.db.config import Settings
from advanced_repository.repositories.base import RepositoryBase
from tests.models import Widget


@pytest_asyncio.fixture
async def sqlite_engine():
    await db_session.dispose_engine()
    engine = db_session.get_engine(Settings(_env_file=None, DATABASE_URL="sqlite:///:memory:"))
    yield engine
    await db_session.dispose_engine()


@pytest.mark.asyncio
async def test_engine_is_created_once_with_async_driver(sqlite_engine):
    assert sqlite_engine.url.drivername == "sqlite+aiosqlite"
    assert db_session.get_engine() is sqlite_engine


@pytest.mark.asyncio
async def test_dispose_engine_forgets_the_engine(sqlite_engine):
    await db_session.dispose_engine()

    assert db_session._ENGINE is None
    assert db_session._SESSION_MAKER is None


@pytest.mark.asyncio
async def test_get_async_session_yields_a_working_session(sqlite_engine):
    sessions = db_session.get_async_session()
    session = await anext(sessions)
    try:
        assert isinstance(session, AsyncSession)
        result = await session.execute(text("SELECT 1"))
        assert result.scalar_one() == 1
    finally:
        await sessions.aclose()


@pytest.mark.asyncio
async def test_unit_of_work_tags_logs_and_resets(session_maker):
    assert uow_id_var.get() is None

    async with db_session.unit_of_work(session_maker) as session:
        assert isinstance(session, AsyncSession)
        assert uow_id_var.get()

    assert uow_id_var.get() is None


@pytest.mark.asyncio
async def test_unit_of_work_discards_uncommitted_changes(session_maker):
    async with db_session.unit_of_work(session_maker) as session:
        await RepositoryBase(session, Widget).add(Widget(name="dropped"))

    async with db_session.unit_of_work(session_maker) as session:
        _, total = await RepositoryBase(session, Widget).get_all(0, 1)

    assert total == 0


@pytest.mark.asyncio
async def test_unit_of_work_commits_through_the_repository(session_maker):
    async with db_session.unit_of_work(session_maker) as session:
        repo = RepositoryBase(session, Widget)
        await repo.add(Widget(name="kept", price=7))
        await repo.commit()

    async with db_session.unit_of_work(session_maker) as session:
        items, total = await RepositoryBase(session, Widget).get_all(0, 10)

    assert total == 1
    assert items[0].name == "kept"
