"""
Repository functions for Member and Team entities.

Search functions read a flattened member/team projection built with an
explicit LEFT OUTER JOIN, so members without a team are kept. Entity-store
functions create and look up the underlying rows.
"""

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import ColumnElement, Row, Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas.member import MemberSearchCondition
from app.api.schemas.pagination import PageRequest, SortOrder
from app.core.errors import ConflictError, NotFoundError
from app.core.observability import db_metrics
from app.db.models import Member, Team
from app.domain.enums import CountStrategy, MemberSortField
from app.repos.pagination import Page, apply_sort, fetch_page
from app.repos.predicates import compose_member_predicate

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS: dict[str, ColumnElement[Any]] = {
    MemberSortField.MEMBER_ID.value: Member.member_id,
    MemberSortField.USERNAME.value: Member.username,
    MemberSortField.AGE.value: Member.age,
    MemberSortField.TEAM_ID.value: Team.team_id,
    MemberSortField.TEAM_NAME.value: Team.name,
}


# ============================================================================
# Search
# ============================================================================


def _member_team_select(condition: MemberSearchCondition) -> Select:
    """Content statement: member/team projection, filtered, not yet ordered."""
    return (
        select(
            Member.member_id.label("member_id"),
            Member.username.label("username"),
            Member.age.label("age"),
            Team.team_id.label("team_id"),
            Team.name.label("team_name"),
        )
        .select_from(Member)
        .outerjoin(Team, Member.team_id == Team.team_id)
        .where(compose_member_predicate(condition))
    )


def _member_team_count(condition: MemberSearchCondition) -> Select:
    """Count statement with the same join and filter as the content statement."""
    return (
        select(func.count(Member.member_id))
        .select_from(Member)
        .outerjoin(Team, Member.team_id == Team.team_id)
        .where(compose_member_predicate(condition))
    )


async def search_members(
    db: AsyncSession,
    condition: MemberSearchCondition,
    *,
    sort: Sequence[SortOrder] = (),
) -> list[Row]:
    """Search members without pagination.

    Args:
        db: Database session
        condition: Search filters; absent fields do not constrain the result
        sort: Optional sort orders; member_id ascending is always appended

    Returns:
        All matching member/team rows

    Raises:
        InvalidArgumentError: If a sort field is unknown
    """
    stmt = apply_sort(_member_team_select(condition), sort, SORTABLE_COLUMNS, Member.member_id)

    with db_metrics.track("member_search"):
        result = await db.execute(stmt)
        rows = list(result.all())

    logger.info(
        f"Member search returned {len(rows)} rows",
        extra={"condition": condition.model_dump(exclude_none=True), "count": len(rows)},
    )
    return rows


async def search_members_page(
    db: AsyncSession,
    condition: MemberSearchCondition,
    page_request: PageRequest,
    *,
    count_strategy: CountStrategy = CountStrategy.AVOID,
) -> Page[Row]:
    """Search members one page at a time.

    With CountStrategy.AVOID the count query only runs when the page size
    does not already prove the total. CountStrategy.ALWAYS counts every time.

    Args:
        db: Database session
        condition: Search filters; absent fields do not constrain the result
        page_request: Offset, limit and sort orders
        count_strategy: How the total is obtained

    Returns:
        Page of member/team rows

    Raises:
        InvalidArgumentError: On an invalid page request or sort field
    """
    page = await fetch_page(
        db,
        _member_team_select(condition),
        _member_team_count(condition),
        page_request,
        sortable_columns=SORTABLE_COLUMNS,
        tie_breaker=Member.member_id,
        strategy=count_strategy,
        operation="member_search",
    )

    logger.info(
        f"Member search page: {len(page.content)} of {page.total_elements} rows",
        extra={
            "condition": condition.model_dump(exclude_none=True),
            "offset": page_request.offset,
            "limit": page_request.limit,
            "total_elements": page.total_elements,
            "count_strategy": count_strategy.value,
        },
    )
    return page


# ============================================================================
# Teams
# ============================================================================


async def create_team(db: AsyncSession, *, name: str) -> Team:
    """Create a team.

    Raises:
        ConflictError: If a team with the same name exists
    """
    team = Team(name=name)
    try:
        db.add(team)
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Conflict creating team: {name}", extra={"error": str(e)})
        raise ConflictError(f"Team '{name}' already exists", details={"name": name}) from e

    logger.info(
        f"Created team {team.team_id}", extra={"team_id": team.team_id, "team_name": name}
    )
    return team


async def get_team(db: AsyncSession, team_id: int) -> Team:
    """Retrieve a team by ID.

    Raises:
        NotFoundError: If the team does not exist
    """
    result = await db.execute(select(Team).where(Team.team_id == team_id))
    team = result.scalar_one_or_none()
    if team is None:
        raise NotFoundError("Team not found", details={"team_id": team_id})
    return team


# ============================================================================
# Members
# ============================================================================


async def create_member(
    db: AsyncSession,
    *,
    username: str,
    age: int,
    team_id: int | None = None,
) -> Member:
    """Create a member, optionally assigned to an existing team.

    Raises:
        NotFoundError: If team_id does not reference an existing team
    """
    if team_id is not None:
        # Check first so an unknown team is a 404 rather than an FK violation
        await get_team(db, team_id)

    member = Member(username=username, age=age, team_id=team_id)
    try:
        db.add(member)
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        if team_id is None:
            raise
        # The team was removed between the lookup and the insert
        logger.warning(
            f"Team {team_id} vanished while creating member {username}",
            extra={"team_id": team_id, "error": str(e)},
        )
        raise NotFoundError("Team not found", details={"team_id": team_id}) from e

    logger.info(
        f"Created member {member.member_id}",
        extra={"member_id": member.member_id, "team_id": team_id},
    )
    return member


async def get_member(db: AsyncSession, member_id: int) -> Member:
    """Retrieve a member by ID.

    Raises:
        NotFoundError: If the member does not exist
    """
    result = await db.execute(select(Member).where(Member.member_id == member_id))
    member = result.scalar_one_or_none()
    if member is None:
        logger.warning(f"Member not found: {member_id}")
        raise NotFoundError("Member not found", details={"member_id": member_id})
    return member


async def list_members(db: AsyncSession) -> list[Member]:
    """Retrieve all members in insertion (ID) order."""
    result = await db.execute(select(Member).order_by(Member.member_id))
    return list(result.scalars().all())


async def find_members_by_username(db: AsyncSession, username: str) -> list[Member]:
    """Retrieve members with exactly this username, in ID order."""
    result = await db.execute(
        select(Member).where(Member.username == username).order_by(Member.member_id)
    )
    return list(result.scalars().all())
