"""
Database migration: create the deploy tables and seed reserved project names
Run this script to update the database schema.
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add backend directory to path to import from deployer
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from deployer.config.logging_config import LoggingConfig
from deployer.db.base import dispose_db, init_db
from deployer.db.models.reserved_name import DEFAULT_RESERVED_NAMES

logger = logging.getLogger(__name__)


async def migrate():
    """Create all tables that don't exist yet, then add missing reserved names."""
    try:
        await init_db()
        logger.info("Database migration completed successfully")
        logger.info(f"Reserved project names: {', '.join(DEFAULT_RESERVED_NAMES)}")
    finally:
        await dispose_db()


if __name__ == "__main__":
    LoggingConfig(log_file_name="migration").setup_logging()
    asyncio.run(migrate())
