"""
Catalog Seeding Script

Creates the tables and inserts the demo coffee catalog into an empty database.
Run from project root: python scripts/seed_catalog.py
"""

import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from coffeeshop.core.config import get_settings, setup_logging  # noqa: E402
from coffeeshop.database import async_session_maker, engine, init_db  # noqa: E402
from coffeeshop.seed import seed_catalog  # noqa: E402


async def main() -> int:
    await init_db()
    async with async_session_maker() as session:
        created = await seed_catalog(session)
    await engine.dispose()
    return created


if __name__ == "__main__":
    setup_logging()
    print("=" * 60)
    print(f"Seeding catalog into {get_settings().database_url}")
    print("=" * 60)
    count = asyncio.run(main())
    print(f"Products created: {count}")
