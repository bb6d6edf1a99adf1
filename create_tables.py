"""
create_tables.py
----------------
One-shot script to create all licensing tables.
Use this for quick setup. For production migrations, use Alembic instead.

Usage:
    python create_tables.py [DATABASE_URL]
"""

import asyncio
import sys
from typing import Optional

from licensing.core.config import settings
from licensing.core.logging import configure_logging, get_logger
from licensing.db.session import build_engine
from licensing.models import Base  # Imports all models so metadata is populated

logger = get_logger(__name__)


async def create_all_tables(database_url: Optional[str] = None) -> None:
    engine = build_engine(database_url or settings.DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    logger.info("All tables created", tables=sorted(Base.metadata.tables))


if __name__ == "__main__":
    configure_logging()
    asyncio.run(create_all_tables(sys.argv[1] if len(sys.argv) > 1 else None))
