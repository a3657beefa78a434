from __future__ import annotations

from typing import Callable, Optional, Type, TypeVar

from fastapi import Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from advanced_repository.core.settings import get_app_settings
from advanced_repository.db.session import get_async_session
from advanced_repository.repositories.base import RepositoryBase
from advanced_repository.schemas.common import Pagination


RepoT = TypeVar("RepoT", bound=RepositoryBase)


# PUBLIC_INTERFACE
def get_repository(repository_cls: Type[RepoT]) -> Callable[..., RepoT]:
    """
    Create a dependency that builds ``repository_cls`` over the request session.

    Usage:
        @router.get("/customers")
        async def list_customers(repo: CustomerRepository = Depends(get_repository(CustomerRepository))):
            ...

    The repository class must know its model (``model`` class attribute).
    """

    def _dep(session: AsyncSession = Depends(get_async_session)) -> RepoT:
        return repository_cls(session)

    return _dep


# PUBLIC_INTERFACE
async def get_pagination(
    skip: int = Query(default=0, ge=0, description="Number of records to skip"),
    take: Optional[int] = Query(default=None, ge=0, description="Max number of records to return"),
) -> Pagination:
    """
    Read skip/take query parameters into a Pagination schema.

    Raises:
        HTTPException: 400 when take exceeds MAX_PAGE_SIZE.
    """
    settings = get_app_settings()
    if take is None:
        take = settings.DEFAULT_PAGE_SIZE
    if take > settings.MAX_PAGE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"take must not exceed {settings.MAX_PAGE_SIZE}.",
        )
    return Pagination(skip=skip, take=take)
