"""
FastAPI routes for member search and member/team creation.

Two search entry points return different response shapes:
- GET /v1/members: plain list, no paging metadata
- GET /v2/members: one page plus totals, with count avoidance
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from app.api.schemas.member import (
    MemberCreate,
    MemberResponse,
    MemberSearchCondition,
    MemberTeamResponse,
    TeamCreate,
    TeamResponse,
)
from app.api.schemas.pagination import PageResponse
from app.core.dependencies import AsyncDbSession, PageParams, SortOrders
from app.domain.enums import CountStrategy
from app.repos import member_repo
from app.repos.pagination import Page

logger = logging.getLogger(__name__)

router = APIRouter(tags=["members"])

SearchCondition = Annotated[MemberSearchCondition, Query()]


def _to_page_response(page: Page) -> PageResponse[MemberTeamResponse]:
    mapped = page.map(MemberTeamResponse.model_validate)
    return PageResponse[MemberTeamResponse](
        content=mapped.content,
        total_elements=mapped.total_elements,
        total_pages=mapped.total_pages,
        has_next=mapped.has_next,
        offset=mapped.offset,
        limit=mapped.limit,
    )


# ============================================================================
# Search Endpoints
# ============================================================================


@router.get(
    "/v1/members",
    response_model=list[MemberTeamResponse],
    summary="Search members",
    description="""
    Return every member matching the filters, joined with its team.

    All filters are optional. Blank values are ignored.
    Members without a team are included with null team fields.
    """,
)
async def search_members_v1(
    condition: SearchCondition,
    db: AsyncDbSession,
    sort: SortOrders,
) -> list[MemberTeamResponse]:
    rows = await member_repo.search_members(db, condition, sort=sort)
    return [MemberTeamResponse.model_validate(row) for row in rows]


@router.get(
    "/v2/members",
    summary="Search members with pagination",
    description="""
    Return one page of members matching the filters.

    The total is derived from the page when the page is shorter than
    `limit`; otherwise a count query runs.
    """,
)
async def search_members_v2(
    condition: SearchCondition,
    page_request: PageParams,
    db: AsyncDbSession,
) -> PageResponse[MemberTeamResponse]:
    page = await member_repo.search_members_page(db, condition, page_request)
    return _to_page_response(page)


@router.get(
    "/v2/members/simple",
    summary="Search members with pagination (always counts)",
)
async def search_members_v2_simple(
    condition: SearchCondition,
    page_request: PageParams,
    db: AsyncDbSession,
) -> PageResponse[MemberTeamResponse]:
    """Same as /v2/members but always runs the count query."""
    page = await member_repo.search_members_page(
        db, condition, page_request, count_strategy=CountStrategy.ALWAYS
    )
    return _to_page_response(page)


# ============================================================================
# Entity Endpoints
# ============================================================================


@router.post("/v1/teams", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def post_team(payload: TeamCreate, db: AsyncDbSession):
    """Create a team. Team names are unique."""
    team = await member_repo.create_team(db, name=payload.name)
    await db.commit()
    return team


@router.post("/v1/members", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def post_member(payload: MemberCreate, db: AsyncDbSession):
    """Create a member, optionally assigned to an existing team."""
    member = await member_repo.create_member(
        db, username=payload.username, age=payload.age, team_id=payload.team_id
    )
    await db.commit()
    return member


@router.get("/v1/members/{member_id}", response_model=MemberResponse)
async def get_member(
    member_id: Annotated[int, Path(ge=1, description="Member identifier")],
    db: AsyncDbSession,
):
    return await member_repo.get_member(db, member_id)
