"""Shared utilities for offset/limit pagination with count avoidance.

A page is produced by a content query (filtered, sorted, offset/limited) and,
only when needed, a count query over the same filter. The count is skipped
when the size of a short page already proves the total:

- first page shorter than the limit: total = content size
- later page that is non-empty and shorter than the limit: total = offset + content size

Any other case (a full page, or an empty page past the end) runs the count
query. Count failures propagate unchanged; they are never read as zero.
"""

import logging
import math
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, Select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas.pagination import PageRequest, SortOrder
from app.core.errors import InvalidArgumentError
from app.core.observability import db_metrics, metrics
from app.domain.enums import CountStrategy, SortDirection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Page[T]:
    """One page of results plus the total number of matching items."""

    content: list[T]
    total_elements: int
    offset: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.limit) if self.total_elements else 0

    @property
    def has_next(self) -> bool:
        return self.offset + len(self.content) < self.total_elements

    def map[U](self, fn: Callable[[T], U]) -> "Page[U]":
        """Return a page with `fn` applied to each item and the same metadata."""
        return Page(
            content=[fn(item) for item in self.content],
            total_elements=self.total_elements,
            offset=self.offset,
            limit=self.limit,
        )


def validate_page_request(page_request: PageRequest) -> None:
    """Ensure offset and limit describe a valid page.

    Args:
        page_request: Requested page

    Raises:
        InvalidArgumentError: If limit <= 0 or offset < 0
    """
    if page_request.limit <= 0:
        raise InvalidArgumentError(
            f"Page limit must be positive, got {page_request.limit}",
            details={"limit": page_request.limit},
        )
    if page_request.offset < 0:
        raise InvalidArgumentError(
            f"Page offset must not be negative, got {page_request.offset}",
            details={"offset": page_request.offset},
        )


def derive_total(page_request: PageRequest, content_size: int) -> int | None:
    """Compute the total from the content size when it is provable.

    Args:
        page_request: Requested page
        content_size: Number of rows the content query returned

    Returns:
        The total number of matching rows, or None if a count query is needed
    """
    if content_size >= page_request.limit:
        return None
    if page_request.offset == 0:
        return content_size
    if content_size > 0:
        return page_request.offset + content_size
    # Empty page past the end: the offset says nothing about the total
    return None


async def get_page[T](
    content: Sequence[T],
    page_request: PageRequest,
    count_query: Callable[[], Awaitable[int]],
    *,
    strategy: CountStrategy = CountStrategy.AVOID,
) -> Page[T]:
    """Assemble a page, running `count_query` only when required.

    Args:
        content: Rows returned by the content query
        page_request: Requested page
        count_query: Coroutine factory returning the total number of matching rows
        strategy: AVOID to skip provable counts, ALWAYS to always count

    Returns:
        Page with content and total
    """
    total = None
    if strategy == CountStrategy.AVOID:
        total = derive_total(page_request, len(content))

    if total is None:
        total = await count_query()
        metrics.search_count_queries_total.labels(outcome="issued").inc()
    else:
        metrics.search_count_queries_total.labels(outcome="skipped").inc()
        logger.debug(
            f"Count query skipped: total={total} derived from short page",
            extra={"offset": page_request.offset, "limit": page_request.limit},
        )

    return Page(
        content=list(content),
        total_elements=total,
        offset=page_request.offset,
        limit=page_request.limit,
    )


def apply_sort(
    stmt: Select,
    sort: Sequence[SortOrder],
    sortable_columns: Mapping[str, ColumnElement[Any]],
    tie_breaker: ColumnElement[Any],
) -> Select:
    """Apply ORDER BY terms to a statement.

    The tie-breaker is appended ascending so that rows with equal sort keys
    keep a stable order between pages.

    Args:
        stmt: Statement to order
        sort: Requested sort orders, applied in sequence
        sortable_columns: Allowed sort field names mapped to columns
        tie_breaker: Unique column appended last

    Returns:
        Ordered statement

    Raises:
        InvalidArgumentError: If a sort field is not in `sortable_columns`
    """
    order_by: list[ColumnElement[Any]] = []
    for order in sort:
        column = sortable_columns.get(order.field)
        if column is None:
            raise InvalidArgumentError(
                f"Cannot sort by '{order.field}'",
                details={"field": order.field, "allowed": sorted(sortable_columns)},
            )
        order_by.append(column.desc() if order.direction == SortDirection.DESC else column.asc())

    order_by.append(tie_breaker.asc())
    return stmt.order_by(*order_by)


async def fetch_page(
    db: AsyncSession,
    stmt: Select,
    count_stmt: Select,
    page_request: PageRequest,
    *,
    sortable_columns: Mapping[str, ColumnElement[Any]],
    tie_breaker: ColumnElement[Any],
    strategy: CountStrategy = CountStrategy.AVOID,
    operation: str = "page",
) -> Page[Any]:
    """Run a content query and, when needed, its count query.

    `stmt` and `count_stmt` must carry the same joins and WHERE clause;
    `count_stmt` must select a single scalar count and must not be ordered or
    limited.

    Args:
        db: Database session
        stmt: Filtered content statement without ORDER BY/OFFSET/LIMIT
        count_stmt: Filtered count statement
        page_request: Requested page
        sortable_columns: Allowed sort field names mapped to columns
        tie_breaker: Unique column appended to every ORDER BY
        strategy: Count strategy
        operation: Metric label prefix for the two queries

    Returns:
        Page of result rows

    Raises:
        InvalidArgumentError: On an invalid page request, before any query runs
    """
    validate_page_request(page_request)
    ordered = apply_sort(stmt, page_request.sort, sortable_columns, tie_breaker)

    with db_metrics.track(f"{operation}_content"):
        result = await db.execute(ordered.offset(page_request.offset).limit(page_request.limit))
        rows = list(result.all())

    async def count_query() -> int:
        with db_metrics.track(f"{operation}_count"):
            count_result = await db.execute(count_stmt)
            return count_result.scalar_one()

    return await get_page(rows, page_request, count_query, strategy=strategy)
