"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from shelfcoach.infrastructure.database.connection import build_engine, get_db, init_db
from shelfcoach.main import app


@pytest.fixture()
async def session_maker(tmp_path: Path):
    """Session factory over a throwaway SQLite file with the schema created."""
    engine = build_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'shelfcoach-test.db'}", poolclass=NullPool
    )
    await init_db(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture()
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture()
async def client(session_maker):
    """HTTP client against the app with the test database swapped in."""

    async def _get_test_db():
        async with session_maker() as s:
            yield s

    app.dependency_overrides[get_db] = _get_test_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
