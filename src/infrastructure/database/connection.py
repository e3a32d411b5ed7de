# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database connection management using SQLAlchemy async.

This module provides the async engine and sessions for the institution
database, and the storage guard every domain write goes through.

Uses SQLAlchemy 2.0 async API with asyncpg driver.

Example:
    from src.infrastructure.database.connection import (
        init_database,
        get_session,
    )

    # Initialize at application startup
    await init_database(settings)

    # Use in request handlers
    async with get_session() as session:
        result = await session.execute(select(ExamRecord))
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.domains.errors import TransientStorageError

if TYPE_CHECKING:
    from src.core.config.settings import Settings

logger = logging.getLogger(__name__)

# Module-level state for the database connection
_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

DEFAULT_STATEMENT_TIMEOUT = 10.0


class DatabaseError(Exception):
    """Base exception for database lifecycle operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the database error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


async def init_database(settings: "Settings") -> None:
    """Initialize the database connection pool.

    This should be called once at application startup.

    Args:
        settings: Application settings containing database configuration.

    Raises:
        DatabaseError: If connection pool creation fails.
    """
    global _engine, _sessionmaker

    try:
        _engine = create_async_engine(
            settings.database.url,
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.max_overflow,
            pool_pre_ping=True,
            pool_recycle=1800,
            echo=False,
        )

        _sessionmaker = async_sessionmaker(
            bind=_engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to initialize database connection", e) from e


async def close_database() -> None:
    """Close the database connection pool.

    This should be called at application shutdown.
    """
    global _engine, _sessionmaker

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _sessionmaker = None


def get_engine() -> AsyncEngine:
    """Get the database async engine.

    Returns:
        The SQLAlchemy async engine.

    Raises:
        DatabaseError: If the database has not been initialized.
    """
    if _engine is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get the database sessionmaker.

    Returns:
        The SQLAlchemy async sessionmaker.

    Raises:
        DatabaseError: If the database has not been initialized.
    """
    if _sessionmaker is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _sessionmaker


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Get an async session for the database.

    Domain services commit their own units of work; this context only
    guarantees that an unfinished transaction is rolled back.

    Yields:
        AsyncSession for database operations.

    Raises:
        DatabaseError: If the database has not been initialized.
    """
    sessionmaker = get_sessionmaker()

    async with sessionmaker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def storage_guard(
    session: AsyncSession,
    operation: str,
    timeout: float | None = None,
) -> AsyncIterator[None]:
    """Run one storage round-trip with a timeout and all-or-nothing semantics.

    Any SQLAlchemy error or timeout inside the block rolls the session back
    and surfaces as TransientStorageError.

    Args:
        session: Session whose transaction the block uses.
        operation: Operation name for logs and error details.
        timeout: Seconds before the round-trip is abandoned.

    Raises:
        TransientStorageError: If the storage call failed or timed out.
    """
    try:
        async with asyncio.timeout(timeout or DEFAULT_STATEMENT_TIMEOUT):
            yield
    except (SQLAlchemyError, TimeoutError) as e:
        logger.warning("Storage operation %s failed: %s", operation, e)
        try:
            await session.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error("Rollback after %s failed: %s", operation, rollback_error)
        raise TransientStorageError(
            f"Storage operation '{operation}' failed",
            details={"operation": operation, "reason": type(e).__name__},
        ) from e


async def check_database_connection() -> bool:
    """Check if the database is reachable.

    Returns:
        True if the database is reachable, False otherwise.
    """
    if _engine is None:
        return False

    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, OSError):
        return False
