"""Async SQLAlchemy storage client.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

The engine lives inside an explicitly constructed StorageClient that the app
creates at startup and disposes at shutdown (see main.lifespan). Nothing
here is a module-level global: tests build their own client against SQLite.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable

import structlog
from fastapi import Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from sneakerbox.db.models import Base

logger = structlog.get_logger()


@dataclass(frozen=True)
class RetryPolicy:
    """How hard to try when the database is not up yet.

    backoff(attempt) returns the delay in seconds before the next attempt
    (attempt starts at 1).
    """

    max_attempts: int = 3
    backoff: Callable[[int], float] = field(default=lambda attempt: 1.0)

    @classmethod
    def fixed(cls, max_attempts: int, delay: float) -> "RetryPolicy":
        return cls(max_attempts=max_attempts, backoff=lambda attempt: delay)

    @classmethod
    def immediate(cls, max_attempts: int = 1) -> "RetryPolicy":
        return cls(max_attempts=max_attempts, backoff=lambda attempt: 0.0)


class StorageClient:
    """Owns the engine + session factory for one application instance."""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        engine_kwargs = {"echo": echo, "pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            # Connection pool: min 5, max 20 connections.
            engine_kwargs.update(pool_size=5, max_overflow=15)
        self.engine: AsyncEngine = create_async_engine(database_url, **engine_kwargs)
        # Session factory — each request gets its own session.
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def connect(self, policy: RetryPolicy | None = None) -> None:
        """Verify the database is reachable, retrying per policy."""
        policy = policy or RetryPolicy()
        for attempt in range(1, policy.max_attempts + 1):
            try:
                await self.ping()
                logger.info("storage.connected", attempt=attempt)
                return
            except (SQLAlchemyError, OSError) as e:
                if attempt >= policy.max_attempts:
                    logger.error(
                        "storage.connect_failed", attempts=attempt, error=str(e)
                    )
                    raise
                delay = policy.backoff(attempt)
                logger.warning(
                    "storage.connect_retry",
                    attempt=attempt,
                    remaining=policy.max_attempts - attempt,
                    delay=delay,
                    error=str(e),
                )
                await asyncio.sleep(delay)

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_all(self) -> None:
        """Create tables directly (tests and local dev; prod uses Alembic)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Scoped session: closing it discards any uncommitted work, so a
        cancelled request never leaves a half-written transaction behind."""
        async with self.session_factory() as session:
            yield session

    async def dispose(self) -> None:
        await self.engine.dispose()


def get_storage(request: Request) -> StorageClient:
    """FastAPI dependency — the StorageClient created in lifespan."""
    return request.app.state.storage


async def get_db(
    storage: StorageClient = Depends(get_storage),
) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with storage.session() as session:
        yield session
