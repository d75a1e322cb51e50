"""
Pydantic schemas for API request/response validation.

This package contains schema definitions for members, teams and
pagination used in API endpoints.
"""

# Re-export schemas for convenient imports.
from .member import MemberCreate as MemberCreate
from .member import MemberResponse as MemberResponse
from .member import MemberSearchCondition as MemberSearchCondition
from .member import MemberTeamResponse as MemberTeamResponse
from .member import TeamCreate as TeamCreate
from .member import TeamResponse as TeamResponse
from .pagination import PageRequest as PageRequest
from .pagination import PageResponse as PageResponse
from .pagination import SortOrder as SortOrder
