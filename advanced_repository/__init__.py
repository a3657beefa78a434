"""
Generic async repository layer over SQLAlchemy.

Typical usage:

    from advanced_repository import LoadStrategy, RepositoryBase, unit_of_work

    async with unit_of_work() as session:
        repo = RepositoryBase(session, Customer)
        page, total = await repo.get_all(0, 20, where=Customer.active.is_(True))
"""

from .core.exceptions import (
    ConfigurationError,
    MultipleResultsError,
    PersistenceError,
    RepositoryError,
)
from .db import Base, Entity, HasId, unit_of_work
from .repositories import LoadStrategy, RepositoryBase

__all__ = [
    "Base",
    "ConfigurationError",
    "Entity",
    "HasId",
    "LoadStrategy",
    "MultipleResultsError",
    "PersistenceError",
    "RepositoryBase",
    "RepositoryError",
    "unit_of_work",
]

__version__ = "0.1.0"
