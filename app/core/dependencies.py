"""
FastAPI dependency injection utilities.

Provides reusable dependencies for database sessions and paging
parameters.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas.pagination import PageRequest, SortOrder
from app.core.config import settings
from app.core.db import get_async_sessionmaker

# ============================================================================
# Database Dependencies
# ============================================================================


async def get_async_db_session() -> AsyncGenerator[AsyncSession]:
    """
    Async database session dependency for FastAPI endpoints.

    Read endpoints never commit; write endpoints call `await db.commit()`
    themselves.

    Usage:
        @router.get("/v1/members")
        async def search(db: AsyncDbSession):
            ...

    Yields:
        Async SQLAlchemy database session
    """
    session_maker = get_async_sessionmaker()
    async with session_maker() as session:
        yield session


# Type alias for async database session dependency
AsyncDbSession = Annotated[AsyncSession, Depends(get_async_db_session)]


# ============================================================================
# Paging Dependencies
# ============================================================================


def get_sort_orders(
    sort: Annotated[
        list[str] | None,
        Query(
            description="Sort order as `field` or `field,asc|desc`; repeat for multiple keys",
            examples=["age,desc"],
        ),
    ] = None,
) -> tuple[SortOrder, ...]:
    """Parse repeated `sort` query parameters, skipping blank values."""
    return tuple(SortOrder.parse(raw) for raw in sort or () if raw.strip())


SortOrders = Annotated[tuple[SortOrder, ...], Depends(get_sort_orders)]


def get_page_request(
    sort: SortOrders,
    offset: Annotated[int, Query(description="Number of items to skip")] = 0,
    limit: Annotated[
        int | None,
        Query(description="Maximum items per page (capped by PAGE_MAX_LIMIT)"),
    ] = None,
) -> PageRequest:
    """
    Build a PageRequest from query parameters, applying configured limits.

    Bounds are not checked here; the executor rejects a non-positive limit
    or negative offset with InvalidArgumentError before any query runs.
    """
    if limit is None:
        limit = settings.page_default_limit
    return PageRequest(offset=offset, limit=min(limit, settings.page_max_limit), sort=sort)


PageParams = Annotated[PageRequest, Depends(get_page_request)]
