"""Database connection and session management."""

from typing import Any, AsyncGenerator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from shelfcoach.core.config import settings
from shelfcoach.infrastructure.database.models import Base


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite leaves foreign key enforcement off on every new connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    """Async engine for ``database_url``; SQLite connections enforce foreign keys."""
    db_engine = create_async_engine(database_url, **kwargs)
    if make_url(database_url).get_backend_name() == "sqlite":
        event.listen(db_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return db_engine


engine = build_engine(settings.database_url, echo=settings.sql_echo)
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; every repository of the request shares it."""
    async with async_session_maker() as session:
        yield session


async def init_db(db_engine: AsyncEngine = engine) -> None:
    """Create any missing tables and indexes."""
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db() -> None:
    await engine.dispose()
