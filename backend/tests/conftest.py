"""
NoteKeeper Backend: Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all
       tests. Database-backed fixtures use a throwaway SQLite file per test
       (aiosqlite driver), so no PostgreSQL server is needed.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session:  Mock AsyncSession (no real DB)
    ├── database_url:     sqlite+aiosqlite URL in tmp_path
    ├── db_engine:        Initialized engine with the notes table created
    ├── db_session:       AsyncSession on db_engine
    ├── app:              Fresh FastAPI app from create_app()
    ├── test_client:      HTTPX AsyncClient routed to `app` via ASGITransport
    └── sample_note_data: Valid create payload
"""

import os

# Override settings for testing BEFORE any notekeeper imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./notekeeper_test.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DEBUG"] = "false"

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from notekeeper import database
from notekeeper.main import create_app


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_find(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = note
            result = await NoteRepository(mock_db_session).find_by_id(1)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}"


@pytest_asyncio.fixture
async def db_engine(database_url):
    """
    Initializes the process engine against a fresh SQLite file.

    ASGITransport does not run the app lifespan, so the engine is set up
    (and torn down) here instead.
    """
    engine = database.init_engine(database_url)
    await database.create_tables()
    yield engine
    await database.dispose_engine()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """A session for repository tests; commits are left to the test."""
    async with database._session_factory() as session:
        yield session


@pytest.fixture
def app():
    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_client(app, db_engine):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_list(test_client):
            response = await test_client.get("/api/notes")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_note_data():
    """A valid create payload, as a browser would send it."""
    return {"title": "Buy milk", "content": "2 liters"}
