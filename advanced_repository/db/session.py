from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from uuid import uuid4

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from advanced_repository.core.logging import uow_id_var
from .config import Settings, get_settings

logger = logging.getLogger(__name__)

_ENGINE: AsyncEngine | None = None
_SESSION_MAKER: async_sessionmaker[AsyncSession] | None = None


def _ensure_engine_initialized(settings: Optional[Settings] = None) -> None:
    """
    Lazily initialize the AsyncEngine and session maker.
    """
    global _ENGINE, _SESSION_MAKER
    if _ENGINE is None:
        settings = settings or get_settings()
        _ENGINE = create_async_engine(
            settings.async_database_url,
            echo=settings.SQL_ECHO,
            pool_pre_ping=True,
        )
        logger.info("Created database engine for %s", _ENGINE.url.render_as_string(hide_password=True))
    if _SESSION_MAKER is None:
        _SESSION_MAKER = async_sessionmaker(
            bind=_ENGINE, expire_on_commit=False, autoflush=False, autocommit=False
        )


# PUBLIC_INTERFACE
def get_engine(settings: Optional[Settings] = None) -> AsyncEngine:
    """
    Return the global AsyncEngine instance.

    ``settings`` only takes effect on the call that creates the engine.
    """
    _ensure_engine_initialized(settings)
    assert _ENGINE is not None
    return _ENGINE


# PUBLIC_INTERFACE
async def dispose_engine() -> None:
    """Dispose the global engine and forget the session maker bound to it."""
    global _ENGINE, _SESSION_MAKER
    if _ENGINE is not None:
        await _ENGINE.dispose()
    _ENGINE = None
    _SESSION_MAKER = None


# PUBLIC_INTERFACE
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield an AsyncSession suitable for FastAPI dependency injection.
    Ensures engine/session factory is initialized.
    """
    _ensure_engine_initialized()
    assert _SESSION_MAKER is not None
    async with _SESSION_MAKER() as session:
        yield session


# PUBLIC_INTERFACE
@asynccontextmanager
async def unit_of_work(
    session_maker: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Async context manager scoping one unit of work to one session.

    Usage:
        async with unit_of_work() as session:
            repo = CustomerRepository(session)
            await repo.add(customer)
            await repo.commit()

    Log records emitted inside the block carry the unit-of-work id. Nothing is
    committed implicitly; staged changes not committed are discarded on exit.
    """
    if session_maker is None:
        _ensure_engine_initialized()
        session_maker = _SESSION_MAKER
    assert session_maker is not None

    token = uow_id_var.set(uuid4().hex[:12])
    try:
        async with session_maker() as session:
            logger.debug("Unit of work started")
            yield session
            logger.debug("Unit of work finished")
    finally:
        uow_id_var.reset(token)
