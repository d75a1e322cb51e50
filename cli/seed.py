"""CLI: Create the schema and seed sample members into DATABASE_URL_APP."""

from __future__ import annotations

import argparse
import asyncio
import logging


async def _seed(count: int) -> int:
    from app.core.db import create_schema, reset_async_engine, session_scope
    from app.services.sample_data import seed_sample_members

    try:
        await create_schema()
        async with session_scope() as db:
            return await seed_sample_members(db, count=count)
    finally:
        await reset_async_engine()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed teamA/teamB sample members")
    parser.add_argument("--count", type=int, default=100, help="members to create")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    created = asyncio.run(_seed(args.count))
    print(f"Created {created} members")
