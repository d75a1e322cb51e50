"""
Domain-specific exceptions for the Member Search API.

These exceptions represent request or lookup failures and are mapped
to appropriate HTTP status codes in the API layer.

Database failures are deliberately absent from this hierarchy: SQLAlchemy
errors raised while executing a search propagate unchanged and are mapped
to 503 by the application's exception handler.
"""

from typing import Any


class MemberSearchError(Exception):
    """Base exception for all member search domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidArgumentError(MemberSearchError):
    """
    Raised when a search or page request is malformed.

    Examples:
    - Page limit of zero or less
    - Negative page offset
    - Sort on an unknown field or with an unknown direction

    Raised before any query is issued.

    HTTP Status: 400 Bad Request
    """

    pass


class NotFoundError(MemberSearchError):
    """
    Raised when a requested resource does not exist.

    Examples:
    - Member ID not found
    - Team ID not found when assigning a member

    HTTP Status: 404 Not Found
    """

    pass


class ConflictError(MemberSearchError):
    """
    Raised when an operation conflicts with current state.

    Examples:
    - Duplicate team name

    HTTP Status: 409 Conflict
    """

    pass


# HTTP Status Code Mapping
ERROR_STATUS_MAP = {
    InvalidArgumentError: 400,
    NotFoundError: 404,
    ConflictError: 409,
}


def get_status_code(error: Exception) -> int:
    """
    Get the HTTP status code for a given exception.

    Args:
        error: The exception instance

    Returns:
        HTTP status code (defaults to 500 for unknown errors)
    """
    return ERROR_STATUS_MAP.get(type(error), 500)
