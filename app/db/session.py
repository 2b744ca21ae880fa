"""
Database Engine and Session Management

This module handles async database connections using SQLAlchemy's async engine.

Key Features:
- Database abstraction: engine built through the adapter matching the URL
- Startup connectivity check bounded by a timeout
- Async session management: one session per request, commit on success,
  rollback on exception

The engine is built once at startup (see app.core.clients) and shared by
every request; nothing here connects at import time.
"""

import asyncio
import logging
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from app.core.exceptions import StoreError
from app.db import models  # noqa: F401  (registers tables on SQLModel.metadata)
from app.db.adapters import get_database_adapter

logger = logging.getLogger(__name__)


def build_engine(database_url: str, connect_timeout: float, **kwargs) -> AsyncEngine:
    """
    Create the async engine through the adapter for this URL.

    Args:
        database_url: Async SQLAlchemy URL
        connect_timeout: Seconds allowed to open a connection
        **kwargs: Extra engine options (e.g. poolclass for tests)
    """
    adapter = get_database_adapter(database_url)
    logger.info(f"Using {adapter.get_dialect_name()} database backend")
    return adapter.create_engine(database_url, connect_timeout, **kwargs)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Create the async session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,  # Prevents SQLAlchemy from expiring objects after commit
        autoflush=False,
    )


async def ping_database(engine: AsyncEngine, timeout: float) -> None:
    """
    Check store connectivity with a trivial query.

    Raises:
        StoreError: If the database cannot be reached within timeout seconds
    """
    async def _ping() -> None:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))

    try:
        await asyncio.wait_for(_ping(), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise StoreError(f"database did not answer within {timeout}s", original_error=e)
    except (SQLAlchemyError, OSError) as e:
        raise StoreError(f"database unreachable: {e}", original_error=e)


async def create_tables(engine: AsyncEngine) -> None:
    """Create the slugs/hits tables if they do not exist yet."""
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function for FastAPI to get a database session.

    This function:
    - Creates a new async session from the process-wide session factory
    - Yields it to the endpoint
    - Commits on success, rolls back on exception
    - Closes session automatically (context manager handles it)
    """
    session_maker = request.app.state.clients.session_maker
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
