"""
Repository layer for data access.

RepositoryBase wraps one mapped model and one AsyncSession and offers paged,
filtered and sorted reads, lookups by id, staged inserts/updates/removals and
an explicit commit. Concrete repositories subclass it and add bespoke queries
through the execute/scalars helpers.
"""
from __future__ import annotations

from .base import LoadStrategy, RepositoryBase

__all__ = ["LoadStrategy", "RepositoryBase"]
