"""Exceptions raised by the repository layer."""
from __future__ import annotations

from typing import Any, Dict, Optional


class RepositoryError(Exception):
    """Base exception for all repository layer errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(RepositoryError):
    """Raised when database settings are missing or incomplete."""


class MultipleResultsError(RepositoryError):
    """Raised when a single-row lookup matched more than one record."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        message = f"More than one {entity_type} matched id '{entity_id}'"
        super().__init__(message, details={"entity_type": entity_type, "entity_id": entity_id})


class PersistenceError(RepositoryError):
    """
    Raised when flushing the unit of work to the database fails.

    The driver exception is chained as ``__cause__``. When SQLAlchemy reports
    the failing statement, it is exposed in ``details`` as ``statement`` and
    ``params``.
    """
