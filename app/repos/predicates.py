"""
Search predicate composition for member queries.

Each helper turns one optional filter value into either None (no constraint)
or a single-column SQL clause. `compose_member_predicate` keeps the present
clauses and joins them with AND, so any combination of filters produces one
WHERE clause. Nothing here touches the database.

The team-name clause references `Team.name`, so the statement it is applied
to must join teams (see `member_repo`).
"""

from sqlalchemy import ColumnElement, and_, true

from app.api.schemas.member import MemberSearchCondition
from app.db.models import Member, Team


def has_text(value: str | None) -> bool:
    """Return True if `value` contains at least one non-whitespace character."""
    return value is not None and bool(value.strip())


def username_eq(username: str | None) -> ColumnElement[bool] | None:
    return Member.username == username if has_text(username) else None


def team_name_eq(team_name: str | None) -> ColumnElement[bool] | None:
    return Team.name == team_name if has_text(team_name) else None


def age_goe(age: int | None) -> ColumnElement[bool] | None:
    # 0 is a bound, not an absent value
    return Member.age >= age if age is not None else None


def age_loe(age: int | None) -> ColumnElement[bool] | None:
    return Member.age <= age if age is not None else None


def member_search_clauses(condition: MemberSearchCondition) -> list[ColumnElement[bool]]:
    """
    Build the clauses for every filter present on `condition`.

    Clauses are returned in a fixed order (username, team name, minimum age,
    maximum age) so the generated SQL is stable for a given condition.

    Args:
        condition: Search filters; any field may be absent

    Returns:
        List of clauses, empty when no filter is present
    """
    candidates = (
        username_eq(condition.username),
        team_name_eq(condition.team_name),
        age_goe(condition.age_goe),
        age_loe(condition.age_loe),
    )
    return [clause for clause in candidates if clause is not None]


def compose_member_predicate(condition: MemberSearchCondition) -> ColumnElement[bool]:
    """
    Conjoin the present filter clauses into a single predicate.

    Args:
        condition: Search filters; any field may be absent

    Returns:
        AND of all present clauses, or `true()` when every filter is absent
    """
    clauses = member_search_clauses(condition)
    if not clauses:
        return true()
    if len(clauses) == 1:
        return clauses[0]
    return and_(*clauses)
