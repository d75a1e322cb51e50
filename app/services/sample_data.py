"""
Sample data for local development.

Creates two teams, `teamA` and `teamB`, and `count` members named
`member0`, `member1`, ... with `age` equal to their index. Even-indexed
members join teamA and odd-indexed members join teamB.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Member
from app.repos import member_repo

logger = logging.getLogger(__name__)

SAMPLE_TEAM_NAMES = ("teamA", "teamB")


async def seed_sample_members(db: AsyncSession, count: int = 100) -> int:
    """
    Insert the sample teams and members unless members already exist.

    Args:
        db: Database session (the caller commits)
        count: Number of members to create

    Returns:
        Number of members created (0 when the table was not empty)
    """
    existing = (await db.execute(select(func.count(Member.member_id)))).scalar_one()
    if existing:
        logger.info(f"Skipping sample data: {existing} members already present")
        return 0

    team_a, team_b = [
        await member_repo.create_team(db, name=name) for name in SAMPLE_TEAM_NAMES
    ]

    for i in range(count):
        team = team_a if i % 2 == 0 else team_b
        await member_repo.create_member(db, username=f"member{i}", age=i, team_id=team.team_id)

    logger.info(f"Seeded {count} sample members", extra={"count": count})
    return count
