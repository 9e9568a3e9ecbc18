from __future__ import annotations

import logging
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import event, false
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import ORMExecuteState, Session, with_loader_criteria

from .base import AuditMixin, Base
from .config import Settings, get_settings

logger = logging.getLogger(__name__)

# Execution option that lifts the standing soft-delete filter for one statement.
INCLUDE_DELETED = "include_deleted"

_SETTINGS = get_settings()
_ENGINE: AsyncEngine | None = None
_SESSION_MAKER: async_sessionmaker[AsyncSession] | None = None


@event.listens_for(Session, "do_orm_execute")
def _exclude_soft_deleted(execute_state: ORMExecuteState) -> None:
    """
    Standing filter: every ORM SELECT hides rows whose audit envelope is
    flagged deleted, for every entity kind carrying the envelope.
    """
    if (
        execute_state.is_select
        and not execute_state.is_column_load
        and not execute_state.execution_options.get(INCLUDE_DELETED, False)
    ):
        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                AuditMixin,
                lambda cls: cls.is_deleted == false(),
                include_aliases=True,
            )
        )


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    # SQLite ignores ON DELETE rules unless enforcement is switched on per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# PUBLIC_INTERFACE
def build_engine(settings: Optional[Settings] = None, url: Optional[str] = None) -> AsyncEngine:
    """
    Create an AsyncEngine for the configured database.

    PostgreSQL engines get bounded pools and an optional statement timeout;
    SQLite engines get foreign key enforcement on every connection.
    """
    settings = settings or _SETTINGS
    url = url or settings.async_database_url
    kwargs: dict[str, Any] = {"echo": settings.SQL_ECHO, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        kwargs["pool_size"] = settings.DB_POOL_SIZE
        kwargs["max_overflow"] = settings.DB_MAX_OVERFLOW
        kwargs["pool_timeout"] = settings.DB_POOL_TIMEOUT
        if settings.DB_STATEMENT_TIMEOUT_MS > 0:
            kwargs["connect_args"] = {
                "server_settings": {"statement_timeout": str(settings.DB_STATEMENT_TIMEOUT_MS)}
            }
    engine = create_async_engine(url, **kwargs)
    if url.startswith("sqlite"):
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


# PUBLIC_INTERFACE
def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory; writes stay staged in the session until an explicit commit."""
    return async_sessionmaker(
        bind=engine, expire_on_commit=False, autoflush=False, autocommit=False
    )


def _ensure_engine_initialized() -> None:
    """
    Lazily initialize the AsyncEngine and session maker.
    """
    global _ENGINE, _SESSION_MAKER
    if _ENGINE is None:
        _ENGINE = build_engine()
    if _SESSION_MAKER is None:
        _SESSION_MAKER = build_session_maker(_ENGINE)


# PUBLIC_INTERFACE
def get_engine() -> AsyncEngine:
    """Return the global AsyncEngine instance."""
    _ensure_engine_initialized()
    assert _ENGINE is not None
    return _ENGINE


# PUBLIC_INTERFACE
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Return the global session factory."""
    _ensure_engine_initialized()
    assert _SESSION_MAKER is not None
    return _SESSION_MAKER


# PUBLIC_INTERFACE
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield an AsyncSession suitable for FastAPI dependency injection.
    One session is one unit of work; nothing it stages survives without a commit.
    """
    async with get_session_maker()() as session:
        yield session


# PUBLIC_INTERFACE
async def create_schema(engine: Optional[AsyncEngine] = None) -> None:
    """Create all tables, constraints and indexes known to the ORM metadata."""
    # Import models so every mapped class is registered on Base.metadata.
    from . import models  # noqa: F401

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured (%d tables)", len(Base.metadata.tables))
