"""Offset pagination schemas."""

from pydantic import BaseModel, ConfigDict, Field

from app.core.errors import InvalidArgumentError
from app.domain.enums import SortDirection


class SortOrder(BaseModel):
    """One ORDER BY term: a field name and a direction."""

    model_config = ConfigDict(frozen=True)

    field: str
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def parse(cls, raw: str) -> "SortOrder":
        """Parse a `field` or `field,direction` query value.

        Raises:
            InvalidArgumentError: If the field is blank or the direction is unknown
        """
        field, _, direction = raw.partition(",")
        field = field.strip()
        direction = direction.strip().lower() or SortDirection.ASC.value

        if not field:
            raise InvalidArgumentError(
                "Sort field must not be blank", details={"sort": raw}
            )
        try:
            return cls(field=field, direction=SortDirection(direction))
        except ValueError as e:
            raise InvalidArgumentError(
                f"Unknown sort direction '{direction}'",
                details={"sort": raw, "allowed": [d.value for d in SortDirection]},
            ) from e


class PageRequest(BaseModel):
    """
    Offset/limit page request.

    Bounds are not enforced at construction time; the paginated executor
    validates them and raises InvalidArgumentError before issuing any query.
    """

    model_config = ConfigDict(frozen=True)

    offset: int = 0
    limit: int
    sort: tuple[SortOrder, ...] = ()

    @classmethod
    def of(cls, offset: int, limit: int, *sort: SortOrder) -> "PageRequest":
        return cls(offset=offset, limit=limit, sort=tuple(sort))


class PageResponse[T](BaseModel):
    """Response model for offset-paginated data."""

    content: list[T]
    total_elements: int = Field(ge=0, description="Total number of matching items")
    total_pages: int = Field(ge=0, description="Number of pages of size `limit`")
    has_next: bool
    offset: int = Field(ge=0, description="Number of items skipped")
    limit: int = Field(ge=1, description="Maximum items per page")
