"""
Database connection and session management
Uses SQLAlchemy async engine for PostgreSQL
Reference: https://docs.sqlalchemy.org/en/20/orm/extensions/asyncio.html
"""
from datetime import datetime, timezone
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from smartwardrobe.core.config import settings


if not settings.DATABASE_URL:
    raise ValueError(
        "DATABASE_URL environment variable is not set. "
        "Please set it in your .env file or environment."
    )


def _connect_args(database_url: str) -> dict:
    """
    Driver-specific connection arguments.
    Only asyncpg understands command_timeout and server_settings.
    Reference: https://magicstack.github.io/asyncpg/current/api/index.html#connection
    """
    if database_url.startswith("postgresql+asyncpg://"):
        return {
            "command_timeout": 60,
            "server_settings": {
                "application_name": "smart_wardrobe_api",
            },
        }
    return {}


# Create async engine
# NullPool: each request gets a fresh connection
# Reference: https://docs.sqlalchemy.org/en/20/core/pooling.html#switching-pool-implementations
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,  # Set to True for SQL query logging (useful for debugging)
    poolclass=NullPool,
    connect_args=_connect_args(settings.DATABASE_URL),
)


# Create async session factory
# Reference: https://docs.sqlalchemy.org/en/20/orm/extensions/asyncio.html#session-basics
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Keep objects accessible after commit
    autocommit=False,
    autoflush=False,
)


# Base class for all database models
# Reference: https://docs.sqlalchemy.org/en/20/orm/declarative_styles.html
class Base(DeclarativeBase):
    """Base class for SQLAlchemy declarative models"""
    pass


# Dependency to get database session
# Used in FastAPI route handlers via dependency injection
# Reference: https://fastapi.tiangolo.com/tutorial/dependencies/
async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Dependency function that provides a database session

    One session (and one transaction) per request:
    - Commits on success
    - Rolls back on error
    - Always closes the session

    Services only flush; every write made while handling a request becomes
    visible at once when this commit runs.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            # Re-raise the original exception so FastAPI can handle it properly
            raise


def utc_now() -> datetime:
    """
    Python-side timestamp default
    Populated on the instance at flush time, so async code can read it without a refresh
    """
    return datetime.now(timezone.utc)
