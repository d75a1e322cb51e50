"""
SQLAlchemy 2.x ORM models for the Member Search API.

Models use the Mapped[] type annotation syntax and mapped_column.

A member references its team through an explicit `team_id` foreign key.
Search queries join teams explicitly (see app/repos/member_repo.py); the
`team` relationship exists for the entity store and is never lazy-loaded
by the search path.
"""

from sqlalchemy import CheckConstraint, ForeignKey, Integer, MetaData, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, validates

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class Team(Base):
    """A team that members may belong to."""

    __tablename__ = "teams"

    team_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    members: Mapped[list["Member"]] = relationship(back_populates="team", lazy="raise")

    def __repr__(self) -> str:
        return f"<Team(team_id={self.team_id}, name={self.name})>"


class Member(Base):
    """
    A member, optionally assigned to a team.

    `team_id` is nullable: members without a team must still show up in
    searches, which is why the search query uses a LEFT OUTER JOIN.
    """

    __tablename__ = "members"
    __table_args__ = (CheckConstraint("age >= 0", name="age_non_negative"),)

    member_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    team_id: Mapped[int | None] = mapped_column(
        ForeignKey("teams.team_id", ondelete="SET NULL"), nullable=True, index=True
    )

    team: Mapped["Team | None"] = relationship(back_populates="members", lazy="raise")

    @validates("age")
    def validate_age(self, key: str, value: int) -> int:
        if value is None or value < 0:
            raise ValueError(f"{key} must be a non-negative integer, got {value!r}")
        return value

    def __repr__(self) -> str:
        return (
            f"<Member(member_id={self.member_id}, username={self.username}, "
            f"age={self.age}, team_id={self.team_id})>"
        )
