"""
Database Session Management

This module handles async database connections using SQLAlchemy's async
engine. Uses the database adapter to configure backend specifics.

Key Features:
- Engine and session factory built from a database URL
- Schema creation for deployments that do not run Alembic
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from shortener.core.setting import settings
from shortener.db import models  # noqa: F401  registers tables on the metadata
from shortener.db.sqlite_adapter import get_database_adapter


def create_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create an engine through the configured database adapter."""
    db_adapter = get_database_adapter()
    return db_adapter.create_engine(database_url or settings.DATABASE_URL)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """
    Create an async session factory bound to `engine`.

    expire_on_commit=False keeps returned models usable after the session
    that loaded them is closed.
    """
    return async_sessionmaker(
        engine,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

