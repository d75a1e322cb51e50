"""
Pydantic schemas for member search and member/team API operations.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ============================================================================
# Search Schemas
# ============================================================================


class MemberSearchCondition(BaseModel):
    """
    Sparse set of optional member search filters.

    Every field is optional and an absent field never constrains the result.
    Strings count as absent when None, empty or whitespace-only. Ages count
    as absent only when None, so 0 is a valid bound.
    """

    username: str | None = Field(
        default=None,
        description="Exact username to match",
        examples=["member1"],
    )
    team_name: str | None = Field(
        default=None,
        description="Exact team name to match",
        examples=["teamB"],
    )
    age_goe: int | None = Field(
        default=None,
        description="Minimum age, inclusive",
        examples=[25],
    )
    age_loe: int | None = Field(
        default=None,
        description="Maximum age, inclusive",
        examples=[40],
    )

    @field_validator("age_goe", "age_loe", mode="before")
    @classmethod
    def blank_age_is_absent(cls, v: Any) -> Any:
        """Treat `?age_goe=` the same as an omitted parameter."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class MemberTeamResponse(BaseModel):
    """Flattened member/team projection returned by searches."""

    model_config = ConfigDict(from_attributes=True)

    member_id: int
    username: str
    age: int
    team_id: int | None = None
    team_name: str | None = None


# ============================================================================
# Entity Schemas
# ============================================================================


class TeamCreate(BaseModel):
    """Request body for creating a team."""

    name: str = Field(..., min_length=1, max_length=255, examples=["teamA"])

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Team name must not be blank")
        return v.strip()


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    team_id: int
    name: str


class MemberCreate(BaseModel):
    """Request body for creating a member."""

    username: str = Field(..., min_length=1, max_length=255, examples=["member1"])
    age: int = Field(..., ge=0, examples=[10])
    team_id: int | None = Field(
        default=None,
        description="Existing team to assign the member to",
        examples=[1],
    )

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Username must not be blank")
        return v


class MemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    member_id: int
    username: str
    age: int
    team_id: int | None = None
