"""
Database Connection and Session Management

This module sets up SQLAlchemy's async database engine and provides
a dependency injection function for FastAPI routes to access database sessions.
"""

import logging

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from damibook.config import settings
from damibook.models import Base

logger = logging.getLogger(__name__)


# Create async database engine
# - Uses the async driver named in DATABASE_URL (asyncpg for PostgreSQL)
# - Connection pool is automatically managed by SQLAlchemy
engine = create_async_engine(settings.DATABASE_URL, echo=False)


# Session factory for creating database sessions
# - expire_on_commit=False: Prevents objects from becoming stale after commit
#   This is important because we often need to access object attributes after
#   committing, and with async code we can't make blocking calls to refresh them
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def init_models():
    """
    Create tables for all models that inherit from Base.

    Looks up the module-level engine at call time so the engine can be
    swapped (tests point it at a throwaway database).
    """
    async with engine.begin() as conn:
        # run_sync() executes synchronous SQLAlchemy code in async context
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database ready: %s", engine.url.render_as_string(hide_password=True))


async def get_db():
    """
    Database session dependency for FastAPI routes.

    Usage in FastAPI routes:
        @router.get("/endpoint")
        async def route(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(User))

    The async context manager ensures the session is properly closed
    even if an exception occurs during request handling.
    """
    async with AsyncSessionLocal() as session:
        yield session
