"""Database Configuration and Connection Management Module

This module handles database connectivity, session management, and table operations
for the interview service. It uses the SQLAlchemy asyncio extension so transcript
writes never block the event loop while a model generation is in flight.

Dependencies:
- sqlalchemy: For database ORM and async connection management.
- aiosqlite: Default async driver for the SQLite database file.
- dotenv: For environment variable loading.
- loguru: For logging operations.
- interview_service.models.interview_models: For database model definitions.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from dotenv import load_dotenv
import os
from loguru import logger
from interview_service.models.interview_models import Base
load_dotenv()

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./interviews.db"
DATABASE_URL = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def build_engine(database_url: str = DATABASE_URL, **kwargs) -> AsyncEngine:
    """Create an async engine for the given URL.

    SQLite connections skip the pool health options that only apply to
    network databases.
    """
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=False, **kwargs)
    return create_async_engine(
        database_url,
        echo=False,
        pool_pre_ping=True, # verify connections before using
        pool_recycle=300, # Recycle connections every 5 minutes
        **kwargs
    )


engine: AsyncEngine = build_engine()

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def dispose_engine():
    """Close pooled connections on application shutdown."""
    await engine.dispose()
    logger.info("Database engine disposed")

async def create_tables(bind: AsyncEngine = None):
    """Create all database tables defined in the models.

    This operation is idempotent - existing tables won't be modified.

    Raises:
        Exception: If table creation fails
    """
    try:
        async with (bind or engine).begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating database table: {e}")
        raise

async def drop_tables(bind: AsyncEngine = None):
    """Drop all database tables defined in the models.

    WARNING: This will permanently delete all interview transcripts and feedback.
    Use only in development/testing environments.
    """
    try:
        async with (bind or engine).begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("Database tables dropped successfully")
    except Exception as e:
        logger.error(f"Error dropping database tables: {e}")
        raise
