"""
Async engine and session factory.

PostgreSQL (asyncpg) is the production store. SQLite (aiosqlite) is supported for
local runs and tests; its connections are switched to BEGIN IMMEDIATE so that
concurrent units of work serialize on the database write lock instead of
deadlocking on lock upgrade.
"""

from functools import lru_cache

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings


def create_engine(url: str, echo: bool = False) -> AsyncEngine:
    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=echo, connect_args={"timeout": 30})
        _install_sqlite_hooks(engine)
        return engine

    settings = get_settings()
    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


def _install_sqlite_hooks(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Take over BEGIN from the driver so we can emit BEGIN IMMEDIATE below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@lru_cache()
def get_engine() -> AsyncEngine:
    settings = get_settings()
    return create_engine(settings.DATABASE_URL, echo=settings.DEBUG)


@lru_cache()
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """FastAPI dependency: the factory every unit of work opens sessions from."""
    return create_session_factory(get_engine())

