"""
Test Configuration

Pytest configuration and shared fixtures for all tests.
"""

import os

# Must be set before the app's engine is created on import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import Base, get_db
from services.personalization import CorrectionIngestionService, CorrectionRateLimiter

# In-memory SQLite shared across sessions of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine with all tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Get test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def rate_limiter():
    """Fresh per-user correction limiter with production defaults."""
    return CorrectionRateLimiter(limit=30, window_seconds=3600)


@pytest.fixture
def ingestion_service(rate_limiter):
    return CorrectionIngestionService(rate_limiter)


@pytest_asyncio.fixture
async def client(session_factory, ingestion_service) -> AsyncGenerator[AsyncClient, None]:
    """Get async test client wired to the test database."""
    from main import app
    from utils.rate_limit import limiter

    async def override_get_db():
        async with session_factory() as session:
            yield session

    original_service = app.state.ingestion_service
    app.dependency_overrides[get_db] = override_get_db
    app.state.ingestion_service = ingestion_service
    limiter.enabled = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    limiter.enabled = True
    app.state.ingestion_service = original_service
    app.dependency_overrides.clear()


async def _register_and_login(client: AsyncClient, email: str, password: str) -> dict:
    response = await client.post("/register", json={"email": email, "password": password})
    assert response.status_code == 201, response.text

    response = await client.post("/login", data={"username": email, "password": password})
    assert response.status_code == 200, response.text

    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest_asyncio.fixture
async def auth_headers(client) -> dict:
    """Bearer headers for a freshly registered user."""
    return await _register_and_login(client, "test@example.com", "TestPassword123!")


@pytest_asyncio.fixture
async def other_auth_headers(client) -> dict:
    """Bearer headers for a second user."""
    return await _register_and_login(client, "other@example.com", "OtherPassword123!")


@pytest.fixture
def sample_corrections():
    """One correction of each learnable field."""
    return [
        {"taskId": "t1", "fieldName": "title", "originalValue": "Krogers run", "correctedValue": "Kroger run"},
        {"taskId": "t2", "fieldName": "category", "originalValue": "Errand", "correctedValue": "Groceries"},
        {"taskId": "t3", "fieldName": "hasTime", "originalValue": "true", "correctedValue": "false", "category": "Reminders"},
    ]
