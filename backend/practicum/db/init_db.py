"""
Database bootstrapping.
Production schemas are managed by migrations; `create_tables` is for local
development and is only called when AUTO_CREATE_TABLES is enabled.
"""

from practicum.db.base import Base
from practicum.db import session as db_session
from practicum.core.logging import get_logger

logger = get_logger(__name__)


async def create_tables() -> None:
    """Create all database tables registered on Base."""
    # Registers every model with Base.metadata
    import practicum.models  # noqa: F401

    if db_session.engine is None:
        db_session.create_engine()

    async with db_session.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables initialized", extra={"tables": sorted(Base.metadata.tables)})
