"""Alembic async env: migrations run over the application's own engine setup."""

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context

import scan2go.domain  # noqa: F401  (registers all models on Base.metadata)
from scan2go.core.config import settings
from scan2go.db.base import Base, build_engine

config = context.config
if config.config_file_name:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# -x url=... overrides DATABASE_URL for one-off runs
DATABASE_URL = context.get_x_argument(as_dictionary=True).get("url", settings.database_url)


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=DATABASE_URL.startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(url=DATABASE_URL, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def _run_sync(sync_conn) -> None:
    _configure(connection=sync_conn)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = build_engine(DATABASE_URL)
    async with engine.connect() as connection:
        await connection.run_sync(_run_sync)
        await connection.commit()
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
