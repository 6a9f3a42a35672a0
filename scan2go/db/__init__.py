"""Database package: async engine construction, session factories, declarative Base."""
from scan2go.db.base import (
    Base,
    async_session_factory,
    build_engine,
    build_session_factory,
    engine,
    get_db,
)

__all__ = ["Base", "async_session_factory", "build_engine", "build_session_factory", "engine", "get_db"]
