from __future__ import annotations

import enum
import logging
import warnings
from contextlib import asynccontextmanager
from typing import (
    Any,
    AsyncGenerator,
    AsyncIterator,
    Callable,
    Generic,
    Iterable,
    List,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from sqlalchemy import Executable, func, inspect, select
from sqlalchemy.exc import MultipleResultsFound, SAWarning, SQLAlchemyError, StatementError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session, make_transient_to_detached
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.sql.expression import ClauseElement, ColumnElement

from advanced_repository.core.exceptions import MultipleResultsError, PersistenceError
from advanced_repository.db.base import HasId

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=HasId)
SessionT = TypeVar("SessionT", bound=AsyncSession)

Predicate = Union[ColumnElement[bool], Callable[[Any], bool]]


class LoadStrategy(str, enum.Enum):
    """How records returned by a read relate to the session."""

    # Fresh detached copies on every read
    AS_NO_TRACKING = "as_no_tracking"
    # Live identity-mapped instances whose changes are flushed on commit
    AUTO_DETECT_CHANGES = "auto_detect_changes"


def _is_sql_expression(predicate: Any) -> bool:
    return isinstance(predicate, ClauseElement) or hasattr(predicate, "__clause_element__")


def _has_identity(entity: Any) -> bool:
    return None not in inspect(entity).mapper.primary_key_from_instance(entity)


def _flag_columns_modified(entity: Any) -> None:
    """Mark every loaded non-key column as changed so flush always emits an UPDATE."""
    state = inspect(entity)
    mapper = state.mapper
    key_attrs = {mapper.get_property_by_column(col).key for col in mapper.primary_key}
    for attr in mapper.column_attrs:
        if attr.key in state.dict and attr.key not in key_attrs:
            flag_modified(entity, attr.key)


# SQLAlchemy only warns when a DELETE of an unversioned row matches nothing.
_DELETE_MISMATCH = r"DELETE statement on table '.*' expected to delete"


def _flush_strict(session: Session) -> None:
    with warnings.catch_warnings():
        warnings.filterwarnings("error", message=_DELETE_MISMATCH, category=SAWarning)
        try:
            session.flush()
        except SAWarning as exc:
            raise StaleDataError(str(exc)) from exc


class RepositoryBase(Generic[ModelT, SessionT]):
    """
    Generic CRUD repository over one mapped model and one AsyncSession.

    Mutations are only staged on the session; nothing reaches the database
    until ``commit`` is awaited. Reads take a ``LoadStrategy``:

      - AS_NO_TRACKING loads through a throwaway session joined to this
        session's connection, so every read returns new detached instances
        and the identity map of ``self.session`` is left alone.
      - AUTO_DETECT_CHANGES reads through ``self.session`` itself.

    Subclasses either set the ``model`` class attribute or pass ``model``
    to the constructor:

        class CustomerRepository(RepositoryBase[Customer, AsyncSession]):
            model = Customer

    The session is not safe for concurrent use; use one repository session
    per unit of work.
    """

    model: Type[ModelT]

    def __init__(self, session: SessionT, model: Optional[Type[ModelT]] = None) -> None:
        self.session = session
        if model is not None:
            self.model = model
        if getattr(self, "model", None) is None:
            raise TypeError(f"{type(self).__name__} requires a model class")

    @property
    def _model_name(self) -> str:
        return self.model.__name__

    # Statement helpers

    async def execute(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute a SQLAlchemy statement on the tracked session."""
        return await self.session.execute(statement, params or {})

    async def scalars(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return scalars."""
        result = await self.execute(statement, params)
        return result.scalars()

    async def scalar_one_or_none(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return a single scalar or None."""
        result = await self.execute(statement, params)
        return result.scalar_one_or_none()

    @asynccontextmanager
    async def _reader(self, load_strategy: LoadStrategy) -> AsyncGenerator[AsyncSession, None]:
        if load_strategy is LoadStrategy.AUTO_DETECT_CHANGES:
            yield self.session
            return
        # Joins the outer transaction; closing it expunges everything it loaded
        # without committing or rolling back the connection.
        connection = await self.session.connection()
        async with AsyncSession(bind=connection, autoflush=False, expire_on_commit=False) as detached:
            yield detached

    # Reads

    async def get_all(
        self,
        skip: int,
        take: int,
        where: Optional[ColumnElement[bool]] = None,
        order_by: Any = None,
        load_strategy: LoadStrategy = LoadStrategy.AS_NO_TRACKING,
    ) -> Tuple[List[ModelT], int]:
        """
        Return one page of records and the record count of the whole table.

        The count ignores ``where``: it is always the unfiltered table size.
        ``order_by`` is applied before ``where`` and the page window. Negative
        ``skip``/``take`` are treated as 0.
        """
        load_strategy = LoadStrategy(load_strategy)
        async with self._reader(load_strategy) as session:
            count = await session.execute(select(func.count()).select_from(self.model))
            total = int(count.scalar_one())

            stmt = select(self.model)
            if order_by is not None:
                stmt = stmt.order_by(order_by)
            if where is not None:
                stmt = stmt.where(where)
            stmt = stmt.offset(max(skip, 0)).limit(max(take, 0))
            result = await session.execute(stmt)
            items = list(result.scalars().all())
        return items, total

    async def get_by_id(
        self,
        entity_id: int,
        load_strategy: LoadStrategy = LoadStrategy.AS_NO_TRACKING,
    ) -> Optional[ModelT]:
        """
        Return the record with the given id, or None.

        Tracked lookups go through the identity map and may not touch the
        database at all. Untracked lookups assert a single row and raise
        MultipleResultsError when the id is not unique.
        """
        load_strategy = LoadStrategy(load_strategy)
        if load_strategy is LoadStrategy.AUTO_DETECT_CHANGES:
            return await self.session.get(self.model, entity_id)

        async with self._reader(load_strategy) as session:
            result = await session.execute(select(self.model).where(self.model.id == entity_id))
            try:
                return result.scalar_one_or_none()
            except MultipleResultsFound as exc:
                raise MultipleResultsError(self._model_name, entity_id) from exc

    # Inserts

    async def add(self, entity: ModelT) -> None:
        """Stage a single record for insertion."""
        self.session.add(entity)
        logger.debug("Staged %d %s record(s) for insertion", 1, self._model_name)

    async def add_many(self, entities: Iterable[ModelT]) -> None:
        """Stage multiple records for insertion."""
        entities = list(entities)
        self.session.add_all(entities)
        logger.debug("Staged %d %s record(s) for insertion", len(entities), self._model_name)

    async def add_many_streaming(self, entities: Iterable[ModelT]) -> AsyncIterator[ModelT]:
        """
        Stage records for insertion one at a time, yielding each right after
        it is staged. Nothing is staged until the consumer pulls it.
        """
        for entity in entities:
            self.session.add(entity)
            yield entity

    # Updates

    async def _attach(self, entity: ModelT) -> ModelT:
        """
        Bring ``entity`` into the session as a persistent instance without
        touching the database.

        A detached copy is re-added under its identity. A transient record
        carrying a primary key is treated as a detached copy of that row; one
        without a key is staged for insertion. Only when another instance of
        the same row is already loaded here are the values merged onto it.
        """
        if entity in self.session:
            return entity
        state = inspect(entity)
        if state.transient:
            if not _has_identity(entity):
                self.session.add(entity)
                return entity
            make_transient_to_detached(entity)
        if state.key in self.session.identity_map:
            return await self.session.merge(entity)
        self.session.add(entity)
        return entity

    async def update(self, entity: ModelT) -> ModelT:
        """
        Mark a record as modified and return the session-bound instance.

        Every loaded column is written on commit. A record whose row no
        longer exists makes ``commit`` raise PersistenceError; it is never
        inserted again.
        """
        entity = await self._attach(entity)
        _flag_columns_modified(entity)
        return entity

    async def update_many(self, entities: Iterable[ModelT]) -> List[ModelT]:
        attached = [await self.update(entity) for entity in entities]
        logger.debug("Staged %d %s record(s) for update", len(attached), self._model_name)
        return attached

    async def update_many_streaming(self, entities: Iterable[ModelT]) -> AsyncIterator[ModelT]:
        """Lazy counterpart of update_many; yields each session-bound instance."""
        for entity in entities:
            yield await self.update(entity)

    # Deletes

    async def remove_where(self, predicate: Predicate) -> List[ModelT]:
        """
        Stage removal of every stored record matching ``predicate`` right now.

        A SQL expression is evaluated by the database. A plain callable is
        evaluated in memory against a full load of the table. Returns the
        records staged for removal.
        """
        if _is_sql_expression(predicate):
            result = await self.session.execute(select(self.model).where(predicate))
            doomed = list(result.scalars().all())
        else:
            result = await self.session.execute(select(self.model))
            doomed = [entity for entity in result.scalars().all() if predicate(entity)]

        for entity in doomed:
            await self.session.delete(entity)
        logger.debug("Staged %d %s record(s) for removal", len(doomed), self._model_name)
        return doomed

    async def remove(self, entity: ModelT) -> None:
        """
        Stage removal of a single record.

        Detached copies are reattached without a query, so a row that is
        already gone surfaces as PersistenceError on commit.
        """
        if entity in self.session.new:
            # Never flushed: dropping it from the session is the whole removal.
            self.session.expunge(entity)
            return
        if inspect(entity).transient and not _has_identity(entity):
            # Nothing stored to remove
            return
        entity = await self._attach(entity)
        await self.session.delete(entity)
        logger.debug("Staged %d %s record(s) for removal", 1, self._model_name)

    # Unit of work

    async def commit(self) -> None:
        """
        Flush and commit everything staged on the session.

        Raises:
            PersistenceError: the database rejected the unit of work, or an
            update or removal matched no stored row. The session is left as
            SQLAlchemy leaves it and must be rolled back by its owner before
            reuse.
        """
        try:
            await self.session.run_sync(_flush_strict)
            await self.session.commit()
        except SQLAlchemyError as exc:
            details: dict[str, Any] = {"entity_type": self._model_name}
            if isinstance(exc, StatementError):
                details["statement"] = exc.statement
                details["params"] = exc.params
            logger.warning("Commit failed for %s unit of work: %s", self._model_name, exc.__class__.__name__)
            raise PersistenceError(f"Failed to persist changes: {exc}", details=details) from exc
