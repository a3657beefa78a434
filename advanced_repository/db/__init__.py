"""
Database package initializer exposing key public interfaces for configuration,
the declarative/entity bases, and engine/session management.
"""

from .base import Base, Entity, HasId
from .config import get_settings, Settings
from .session import (
    dispose_engine,
    get_engine,
    get_async_session,
    unit_of_work,
)

__all__ = [
    "Base",
    "Entity",
    "HasId",
    "Settings",
    "get_settings",
    "dispose_engine",
    "get_engine",
    "get_async_session",
    "unit_of_work",
]
