"""
Database startup checks: connectivity, optional table creation and schema drift.
"""
import logging
from typing import List
from sqlalchemy import text, inspect
from connections.postgres_connection import DatabaseConnection
from models import Base

logger = logging.getLogger(__name__)


async def check_db_connection_async() -> bool:
    """Run ``SELECT 1`` against the configured database."""
    try:
        async with DatabaseConnection.get_async_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False


async def missing_tables_async() -> List[str]:
    """Mapped tables (projects, BOQ, KPI, ledgers) not present in the database."""
    async with DatabaseConnection.get_async_engine().connect() as conn:
        existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
    return sorted(name for name in Base.metadata.tables if name not in existing)


async def init_db_async(create_tables: bool = False):
    """
    Verify the database on startup.

    Args:
        create_tables: create any mapped table that does not exist yet
    """
    try:
        if not await check_db_connection_async():
            raise RuntimeError("Cannot connect to database")

        if create_tables:
            logger.info("Creating missing tables...")
            async with DatabaseConnection.get_async_engine().begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        missing = await missing_tables_async()
        if missing:
            logger.warning(f"Tables missing from database: {', '.join(missing)}")
        else:
            logger.info(f"All {len(Base.metadata.tables)} planning and cost-control tables present")

    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)
        raise
