"""Database connection management.

Provides async database connection using SQLAlchemy with asyncpg.

## Configuration

Database connection is configured via environment variables:
- DATABASE_URL: Full PostgreSQL connection string
- DATABASE_POOL_SIZE: Connection pool size (default: 5)
- DATABASE_MAX_OVERFLOW: Max overflow connections (default: 10)

SQLite URLs (`sqlite+aiosqlite:///path.db`) are accepted for tests and local
development. They get a fresh connection per checkout and a busy timeout so
concurrent writers wait for each other instead of failing.

## Usage

```python
from athlete_sessions.database import Database

database = Database.from_settings(settings)

async with database.transaction() as db:
    await db.execute(...)

await database.close()
```
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from athlete_sessions.config import Settings
from athlete_sessions.database.models import Base

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def _configure_sqlite(engine: AsyncEngine) -> None:
    """Enforce foreign keys and take the write lock when a transaction begins.

    With deferred transactions two writers can each hold a lock the other
    needs, and SQLite then fails immediately instead of waiting.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """Owns the async engine and session factory.

    One instance is created at process start and disposed at shutdown.
    """

    def __init__(
        self,
        url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
    ):
        engine_kwargs: dict[str, Any] = {"echo": echo}
        if url.startswith("sqlite"):
            engine_kwargs["poolclass"] = NullPool
            engine_kwargs["connect_args"] = {"timeout": SQLITE_BUSY_TIMEOUT_SECONDS}
        else:
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=True,  # Verify connections before use
            )

        logger.info("Initializing database connection")

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        if url.startswith("sqlite"):
            _configure_sqlite(self.engine)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            echo=settings.database_echo,
        )

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    async def close(self) -> None:
        """Dispose of the connection pool."""
        logger.info("Closing database connection")
        await self.engine.dispose()

    async def create_tables(self) -> None:
        """Create all database tables.

        For development/testing only. Use migrations in production.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("Database tables created")

    async def drop_tables(self) -> None:
        """Drop all database tables.

        For development/testing only. Use with caution!
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

        logger.warning("Database tables dropped")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session.

        Transactions are not automatically committed - call commit() explicitly.
        """
        session = self._session_factory()
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a session inside a transaction.

        Commits when the block exits normally, rolls back on any exception.
        """
        async with self.session() as session:
            async with session.begin():
                yield session
