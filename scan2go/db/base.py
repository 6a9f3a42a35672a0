"""Async SQLAlchemy engine, session factory, declarative Base, and FastAPI dependency."""


from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from scan2go.core.config import settings

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

def build_engine(url: str, **kwargs) -> AsyncEngine:
    """Create an async engine; SQLite gets real BEGIN/SAVEPOINT semantics."""
    engine_kwargs: dict = {"pool_pre_ping": True, **kwargs}

    is_sqlite = url.startswith("sqlite")
    # SQLite (local dev) doesn't support connection pooling parameters
    if is_sqlite:
        engine_kwargs.setdefault("connect_args", {"check_same_thread": False})

    new_engine = create_async_engine(url, **engine_kwargs)

    if is_sqlite:
        # The sqlite3 driver defers BEGIN on its own, which breaks nested
        # transactions; take over transaction control explicitly. IMMEDIATE
        # takes the write lock at BEGIN, so a second writer waits on the busy
        # timeout and then reads what the first one committed.
        @event.listens_for(new_engine.sync_engine, "connect")
        def _disable_driver_transactions(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(new_engine.sync_engine, "begin")
        def _emit_begin(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return new_engine


engine = build_engine(settings.database_url, echo=False)

# ---------------------------------------------------------------------------
# Session factory
# ---------------------------------------------------------------------------

def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


async_session_factory = build_session_factory(engine)

# ---------------------------------------------------------------------------
# Declarative Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """All ORM models inherit from this base."""

# ---------------------------------------------------------------------------
# FastAPI dependency
# ---------------------------------------------------------------------------
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session; roll back on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
