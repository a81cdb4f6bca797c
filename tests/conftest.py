"""
Test configuration and fixtures

Every test gets its own SQLite file. Sessions use separate connections, so
work committed by a service is only visible to assertions through a fresh
session, exactly as on PostgreSQL.
"""

import os
import random
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

# Set test environment before the package reads its settings
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"

from waitlist_lottery.core.database import Base  # noqa: E402
from waitlist_lottery.models import UserRole  # noqa: E402

from factories import make_event, make_user  # noqa: E402


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Create async database engine for tests"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'waitlist.db'}",
        poolclass=NullPool,
        # Concurrent fan-out batches wait for the write lock instead of failing
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session the services under test work on"""
    async with session_factory() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


@pytest.fixture
def rng():
    return random.Random(1234)


# Common fixtures

@pytest_asyncio.fixture
async def organizer(session_factory):
    return await make_user(session_factory, "organizer", UserRole.ORGANIZER)


@pytest_asyncio.fixture
async def event(session_factory, organizer):
    return await make_event(session_factory, organizer.id)


@pytest_asyncio.fixture
async def entrant(session_factory):
    return await make_user(session_factory, "alice")


@pytest_asyncio.fixture
async def client(session_factory):
    """Create test client with dependency override"""
    from waitlist_lottery.main import app
    from waitlist_lottery.core.database import get_session, get_session_factory

    async def override_get_session():
        async with session_factory() as session:
            yield session

    def override_get_session_factory():
        return session_factory

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_factory] = override_get_session_factory

    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
