"""Async database engine construction and schema helpers.

The engine is built once by the application factory and handed to every
repository; nothing in the package reaches for a module-level engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import event, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel

if TYPE_CHECKING:
    from clubhouse.config.settings import Settings

_UNIQUE_VIOLATION = "23505"


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the process-wide async engine for the configured database."""
    if settings.database_url.startswith("sqlite"):
        engine = create_async_engine(settings.database_url, echo=settings.debug)
        configure_sqlite(engine)
        return engine
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def configure_sqlite(engine: AsyncEngine) -> None:
    """Enable foreign keys and real SAVEPOINT support on a SQLite engine.

    pysqlite defers BEGIN until the first DML statement, which breaks nested
    transactions; BEGIN is emitted explicitly instead.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


def is_unique_violation(exc: IntegrityError) -> bool:
    """Tell a uniqueness violation apart from other integrity errors."""
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code is not None:
        return str(code) == _UNIQUE_VIOLATION
    return "UNIQUE constraint failed" in str(orig)


async def ping(engine: AsyncEngine) -> None:
    """Round-trip a trivial query; raises if the store is unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables (for dev/testing only; use Alembic in production)."""
    import clubhouse.models.database  # noqa: F401  # register tables on the metadata

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
