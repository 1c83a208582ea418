"""
database.py — async engine, session factory and the get_db dependency.

PostgreSQL (asyncpg) in production, SQLite (aiosqlite) for local runs and
tests; the URL in settings decides. Only this module creates engines or
sessions for the application.

    async def route(db: AsyncSession = Depends(get_db)): ...
"""
from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from esgtracker.config import settings


class Base(DeclarativeBase):
    """Metadata root for esgtracker.models; migrations/env.py imports it from here."""


def _engine_options() -> dict:
    options = {"echo": settings.debug}
    if not settings.is_sqlite:
        options.update(pool_size=5, max_overflow=10, pool_pre_ping=True)
    return options


async_engine = create_async_engine(settings.database_url, **_engine_options())


if settings.is_sqlite:
    @event.listens_for(async_engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        """ON DELETE CASCADE is inert in SQLite until foreign_keys is on for the connection."""
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# expire_on_commit=False: records built after commit must not trigger lazy reloads
AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request: commit when the route returns, roll back if it raises."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
