"""
Alembic migration environment.

Migrations run through the same async driver as the application (asyncpg, or
aiosqlite for local files), so DATABASE_URL is the only URL to configure.
Override it for one run with:  alembic -x db_url=sqlite+aiosqlite:///./rsvp.db upgrade head
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

from app.db.base import Base
from app.models import Event, Invitation, Registrant, Companion  # noqa: F401 - registers tables on Base.metadata
from app.core.config import get_settings

config = context.config

db_url = context.get_x_argument(as_dictionary=True).get("db_url") or get_settings().DATABASE_URL
config.set_main_option("sqlalchemy.url", db_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# SQLite cannot ALTER constraints in place
RENDER_AS_BATCH = db_url.startswith("sqlite")


def run_migrations_offline() -> None:
    """Emit the SQL script instead of executing it."""
    context.configure(
        url=db_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=RENDER_AS_BATCH,
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=RENDER_AS_BATCH,
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
