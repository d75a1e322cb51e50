"""
Domain enums for member search.

These enums are shared by the repository layer and the API schemas so that
query parameters and repository arguments use the same vocabulary.
"""

from enum import Enum


class SortDirection(str, Enum):
    """Sort direction for a single ORDER BY term."""

    ASC = "asc"
    DESC = "desc"


class CountStrategy(str, Enum):
    """
    How the paginated executor obtains the total number of matching rows.

    AVOID skips the count query whenever the content query already proves the
    total (a short page). ALWAYS issues the count query for every page.
    """

    AVOID = "avoid"
    ALWAYS = "always"


class MemberSortField(str, Enum):
    """Fields of the member/team projection that a search may be ordered by."""

    MEMBER_ID = "member_id"
    USERNAME = "username"
    AGE = "age"
    TEAM_ID = "team_id"
    TEAM_NAME = "team_name"
