# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database connection management using SQLAlchemy async.

The Database object owns the async engine and sessionmaker. It is built
once at application startup from the database settings and passed to the
services that need it; there is no module-level connection state.

Uses SQLAlchemy 2.0 async API with the asyncpg driver in production and
aiosqlite for local runs and tests.

Example:
    from eduanalytics.infrastructure.database.connection import Database

    database = Database.from_settings(settings.database)

    async with database.session() as session:
        result = await session.execute(select(School))
        schools = result.scalars().all()

    await database.dispose()
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from eduanalytics.infrastructure.database.models.base import Base

if TYPE_CHECKING:
    from eduanalytics.core.config.settings import DatabaseSettings


class DatabaseError(Exception):
    """Base exception for database operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Async engine and session factory for the application database.

    Attributes:
        engine: The SQLAlchemy async engine.
        sessionmaker: Factory producing AsyncSession objects.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        """Wrap an existing engine.

        Args:
            engine: Async engine to issue sessions for.
        """
        self.engine = engine
        self.sessionmaker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_url(cls, url: str, echo: bool = False, **engine_options: Any) -> "Database":
        """Create a Database for a connection URL.

        SQLite URLs get foreign key enforcement, and in-memory SQLite URLs a
        single shared connection so every session sees the same data.

        Args:
            url: Async SQLAlchemy URL.
            echo: Whether to log SQL statements.
            **engine_options: Extra create_async_engine options.

        Raises:
            DatabaseError: If engine creation fails.
        """
        if url.startswith("sqlite") and (":memory:" in url or url.endswith("://")):
            engine_options.setdefault("poolclass", StaticPool)
            engine_options.setdefault("connect_args", {"check_same_thread": False})

        try:
            engine = create_async_engine(url, echo=echo, **engine_options)
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to initialize database connection", e) from e

        if url.startswith("sqlite"):
            event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        return cls(engine)

    @classmethod
    def from_settings(cls, settings: "DatabaseSettings", echo: bool = False) -> "Database":
        """Create a Database from database settings.

        Args:
            settings: Database configuration.
            echo: Whether to log SQL statements.
        """
        if settings.is_sqlite:
            return cls.from_url(settings.url, echo=echo)

        return cls.from_url(
            settings.url,
            echo=echo,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_pre_ping=True,
            pool_recycle=1800,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Get an async session.

        The session is committed on success and rolled back on exception.

        Yields:
            AsyncSession for database operations.

        Raises:
            DatabaseError: If a database operation fails.
        """
        async with self.sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError("Database operation failed", e) from e
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create all tables from the ORM metadata (development and tests)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def check_connection(self) -> bool:
        """Check if the database is reachable.

        Returns:
            True if the database is reachable, False otherwise.
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
