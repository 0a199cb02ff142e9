"""
Database table creation script.

Enables the pgvector extension and creates all tables defined in ORM models.

Dependencies: sqlalchemy, buddy.configs
System role: Database schema initialization

Usage:
    python -m buddy.boundary.db.create_tables
"""

import asyncio
import logging

from sqlalchemy import text

from buddy.boundary.db.base import Base
from buddy.boundary.db.connection import dispose_engine, get_async_engine

# Import all models to register them with Base.metadata
from buddy.boundary.db.models import (  # noqa: F401
    ChunkModel,
    ConversationModel,
    DocumentModel,
    MessageModel,
    SettingsModel,
)

logger = logging.getLogger(__name__)


async def create_all_tables() -> None:
    """
    Create the vector extension and all tables.

    Idempotent: uses IF NOT EXISTS semantics, so safe to run repeatedly.

    Raises:
        SQLAlchemyError: If the connection or DDL fails
    """
    engine = get_async_engine()
    async with engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)
    logger.info("All tables created successfully.")


async def drop_all_tables() -> None:
    """Drop all tables and their data."""
    engine = get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("All tables dropped.")


async def _main() -> None:
    try:
        await create_all_tables()
    finally:
        await dispose_engine()


if __name__ == "__main__":
    from buddy.observability.logger import configure_logging

    configure_logging()
    asyncio.run(_main())
