from __future__ import annotations

from typing import Generic, List, Sequence, Tuple, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


# PUBLIC_INTERFACE
class Pagination(BaseModel):
    """Pagination parameters, named after RepositoryBase.get_all arguments."""
    skip: int = Field(0, ge=0, description="Number of records to skip")
    take: int = Field(100, ge=0, description="Max number of records to return")


# PUBLIC_INTERFACE
class PageResponse(BaseModel, Generic[T]):
    """One page of items plus the unfiltered record count of the collection."""
    items: List[T] = Field(default_factory=list, description="Records in this page")
    total: int = Field(..., ge=0, description="Total records in the collection (before filtering)")

    @classmethod
    def from_page(cls, page: Tuple[Sequence[object], int]) -> "PageResponse[T]":
        """Build a response from the (items, total) tuple returned by get_all."""
        items, total = page
        return cls.model_validate({"items": list(items), "total": total}, from_attributes=True)
