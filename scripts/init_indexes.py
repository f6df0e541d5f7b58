#!/usr/bin/env python3
"""
Create the collections' indexes outside of application startup.

The API ensures the same indexes when it starts; run this before the first
deploy or after restoring a database dump so unique constraints exist before
any traffic arrives.

Usage:
    python -m scripts.init_indexes

Environment variables:
    MONGODB_URI - MongoDB connection string
    MONGODB_DATABASE - Database name (default: lms)
"""

import asyncio
import logging
import sys

from common.database import MongoDB
from lms.config import settings
from lms.database import ensure_indexes

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def main() -> int:
    """Connect, ensure indexes, disconnect."""
    db = MongoDB()

    try:
        await db.connect(
            uri=settings.MONGODB_URI,
            database_name=settings.MONGODB_DATABASE,
            server_selection_timeout_ms=settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
        )
    except Exception as e:
        logger.error(f"Could not connect to MongoDB: {e}")
        return 1

    try:
        await ensure_indexes(db.db)
        logger.info(f"Indexes ready on {settings.MONGODB_DATABASE}")
        return 0
    finally:
        await db.disconnect()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
