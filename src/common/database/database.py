import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from src.common.config import settings  # Import the settings object
from src.common.errors import StoreError

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    """Pool options per backend."""
    if url.startswith("sqlite"):
        # SQLite connections are opened per checkout and never shared between event loops
        return {"poolclass": NullPool}
    return {"pool_pre_ping": True, "pool_recycle": 1800}


# SQLAlchemy async engine and session setup
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL),
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def connect_to_db():
    """Connect to the database."""
    try:
        # Test connection by executing a simple query
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connected successfully")
    except Exception:
        logger.exception("Error connecting to the database")
        raise


async def close_db_connection():
    """Close the database connection."""
    try:
        await engine.dispose()
        logger.info("Database connection closed successfully")
    except Exception:
        logger.exception("Error closing the database connection")
        raise


async def commit_or_raise(session: AsyncSession) -> None:
    """
    Commit the current transaction.

    Store failures are rolled back and surfaced as StoreError so the caller
    sees a retryable 503 instead of a crashed request.
    """
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Store write failed: %s", e)
        raise StoreError() from e


# Dependency for using a session in routes
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for use in FastAPI routes."""
    async with async_session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
