# leaddesk/db/session.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from leaddesk.core.config import settings
from leaddesk.core.exceptions import ConfigurationError
from leaddesk.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

# Created lazily: importing the app must not require a database.
engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker[AsyncSession]] = None


def normalize_database_url(url: str) -> str:
    """Point plain Postgres URLs at the asyncpg driver.

    Hosted providers hand out ``postgres://`` URLs with ``sslmode``; asyncpg
    only understands ``ssl``.
    """
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

    parsed = make_url(url)
    if parsed.drivername == "postgresql+asyncpg" and "sslmode" in parsed.query:
        query = dict(parsed.query)
        sslmode = query.pop("sslmode")
        query.setdefault("ssl", sslmode)
        parsed = parsed.set(query=query)
        return parsed.render_as_string(hide_password=False)
    return url


def create_database_engine() -> AsyncEngine:
    """Create and configure the async database engine."""
    global engine, AsyncSessionLocal

    if engine is not None:
        return engine

    raw_url = settings.resolved_database_url()
    if not raw_url:
        raise ConfigurationError("Database is not configured. Set DATABASE_URL.")

    database_url = normalize_database_url(raw_url)

    if settings.is_testing or database_url.startswith("sqlite"):
        # Use NullPool for tests to ensure clean state
        engine = create_async_engine(
            database_url,
            poolclass=NullPool,
            echo=settings.debug,
        )
    else:
        engine = create_async_engine(
            database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
            pool_recycle=settings.database_pool_recycle,
            pool_pre_ping=True,
            echo=settings.debug,
            connect_args={
                "command_timeout": 60,
                "server_settings": {
                    "application_name": "leaddesk_api",
                    "statement_timeout": str(settings.database_statement_timeout_seconds * 1000),
                },
            },
        )

    AsyncSessionLocal = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    logger.info(
        "database.engine.created",
        dialect=engine.dialect.name,
        pool_size=settings.database_pool_size,
        testing=settings.is_testing,
    )

    return engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    create_database_engine()
    return AsyncSessionLocal


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session for dependency injection."""
    session = get_sessionmaker()()

    try:
        yield session
    except SQLAlchemyError as e:
        logger.error("database.session_error", error=str(e))
        await session.rollback()
        raise
    finally:
        await session.close()


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """Session for callers outside a request (status checks, CLI)."""
    session = get_sessionmaker()()
    try:
        yield session
    finally:
        await session.close()


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""
    global engine, AsyncSessionLocal

    if engine is None:
        return

    await engine.dispose()
    engine = None
    AsyncSessionLocal = None
    logger.info("database.connection_closed")
