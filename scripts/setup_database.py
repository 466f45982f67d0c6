#!/usr/bin/env python3
"""
Database Setup Script

Applies the SQL migrations in migrations/ (in file name order) and seeds
the standard rewards and default achievements.

- Idempotent: tables use IF NOT EXISTS and catalog rows ON CONFLICT DO NOTHING
- Existing catalog rows are never overwritten

Usage:
    python scripts/setup_database.py [--skip-seed]

Requirements:
    - Database connection configured (DATABASE_URL env var)
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from gymtrainer.db.connection import db
from gymtrainer.db.postgres import PostgresCatalog
from gymtrainer.gamification.catalog import DEFAULT_ACHIEVEMENTS, STANDARD_REWARDS

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent.parent / "migrations"


async def apply_migrations() -> int:
    """Run every migrations/*.sql file; returns how many were applied"""
    files = sorted(MIGRATIONS_DIR.glob("*.sql"))

    async with db.connection() as conn:
        for path in files:
            logger.info(f"Applying {path.name}...")
            async with conn.transaction():
                await conn.execute(path.read_text())

    return len(files)


async def main(skip_seed: bool) -> None:
    await db.init_pool()
    try:
        applied = await apply_migrations()
        logger.info(f"Applied {applied} migration file(s)")

        if not skip_seed:
            catalog = PostgresCatalog(db)
            await catalog.seed(DEFAULT_ACHIEVEMENTS, STANDARD_REWARDS)
            logger.info(
                f"Seeded {len(DEFAULT_ACHIEVEMENTS)} achievements "
                f"and {len(STANDARD_REWARDS)} rewards"
            )
    finally:
        await db.close_pool()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create tables and seed the catalog")
    parser.add_argument("--skip-seed", action="store_true", help="Only apply migrations")
    args = parser.parse_args()

    asyncio.run(main(args.skip_seed))
