"""
Public Pydantic schemas shared by FastAPI routes and tests.
"""

from .common import PageResponse, Pagination  # noqa: F401
