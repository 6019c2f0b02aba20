"""Script to initialize the database."""

import asyncio

import structlog

from clinic_api.database import engine
from clinic_api.middleware.logging import configure_logging
from clinic_api.models import metadata

logger = structlog.get_logger()


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    logger.info("database_initialized", tables=sorted(metadata.tables))
    await engine.dispose()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(init_db())
