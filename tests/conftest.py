"""Shared fixtures: in-memory cache store and Warcraft Logs clients."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from wcl_fixtures import API_URL, TOKEN_URL

from playercard.api.dependencies import get_warcraft_logs_client
from playercard.db.database import get_session
from playercard.main import app
from playercard.models.db import Base
from playercard.services.warcraft_logs import WarcraftLogsClient, WarcraftLogsConfig


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def wcl_config() -> WarcraftLogsConfig:
    return WarcraftLogsConfig(
        client_id="test-id",
        client_secret="test-secret",
        api_url=API_URL,
        token_url=TOKEN_URL,
        timeout=5.0,
    )


@pytest.fixture
def wcl_client(wcl_config: WarcraftLogsConfig) -> WarcraftLogsClient:
    """A configured client; every call must be mocked with respx."""
    return WarcraftLogsClient(wcl_config)


@pytest.fixture
def unconfigured_client() -> WarcraftLogsClient:
    return WarcraftLogsClient(WarcraftLogsConfig(api_url=API_URL, token_url=TOKEN_URL))


@pytest.fixture
async def api_client(session_factory, wcl_client: WarcraftLogsClient):
    """Provide an async test client with overridden session and Warcraft Logs client."""

    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_warcraft_logs_client] = lambda: wcl_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
