"""
Notes API Backend — Database Engine & Session Management
==========================================================

What:  Async SQLAlchemy engine, session factory and declarative base.
Why:   Centralizes all database connection logic in one place.
How:   `Database` owns one async engine (with its connection pool) and hands
       out sessions that commit on success and roll back on error.
Who:   Built once by the application lifespan and handed to NoteRepository.
When:  Engine is created at startup; a session is opened per store operation;
       the engine is disposed on shutdown.

Connection Pooling Strategy:
    pool_size / max_overflow come from settings. SQLite URLs (used by the test
    suite through aiosqlite) skip the pool arguments, which the SQLite pool
    classes do not accept.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for autogenerate.
    """
    pass


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create the async engine, applying pool sizing only where the driver supports it."""
    kwargs = {"echo": settings.log_level == "DEBUG"}
    if not settings.database_url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(settings.database_url, **kwargs)


class Database:
    """
    Process-wide handle on the relational store.

    One instance per process. Sessions are short-lived: each repository
    operation opens one, runs a single unit of work and closes it, so the
    per-row atomicity of the store is the only consistency guarantee.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        # expire_on_commit=False: returned ORM objects stay readable after the
        # session that loaded them is closed
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(create_engine_from_settings(settings))

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Yield a session for one unit of work.

        On success: commits the transaction.
        On error:   rolls back and re-raises so the error mapper responds.
        Always:     closes the session (returns the connection to the pool).
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def create_all(self, metadata: Optional[object] = None) -> None:
        """
        Create all tables directly from model metadata.

        Used by the test suite and throwaway development databases;
        real deployments run `alembic upgrade head` instead.
        """
        target = metadata or Base.metadata
        async with self.engine.begin() as conn:
            await conn.run_sync(target.create_all)

    async def dispose(self) -> None:
        """
        What:  Gracefully closes all connections in the pool.
        When:  Called during application shutdown (lifespan handler).
        """
        await self.engine.dispose()
