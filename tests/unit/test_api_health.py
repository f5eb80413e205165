"""Tests for Health API routes."""

from collections.abc import AsyncGenerator
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from hilal.api.deps import set_scheduler, set_store, set_telegram_bot
from hilal.api.routes.health import router
from hilal.infrastructure.state.store import StateStore


@pytest.fixture
def mock_scheduler() -> MagicMock:
    """Return mock scheduler."""
    scheduler = MagicMock()
    scheduler.is_running = True
    scheduler.job_ids.return_value = ["iftar:-100", "suhoor:-100"]
    return scheduler


@pytest.fixture
def mock_bot() -> MagicMock:
    """Return mock Telegram bot."""
    bot = MagicMock()
    bot.is_running = True
    return bot


@pytest.fixture
def app() -> FastAPI:
    """Create test FastAPI app."""
    app = FastAPI()
    app.include_router(router)
    return app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async test client with app state cleared afterwards."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    set_scheduler(None)
    set_telegram_bot(None)
    set_store(None)


class TestHealthCheck:
    """Tests for GET /health."""

    @pytest.mark.asyncio
    async def test_health_check_returns_ok(self, client: AsyncClient) -> None:
        """Test basic health check returns ok with a version string."""
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert isinstance(data["version"], str)


class TestReadinessCheck:
    """Tests for GET /health/ready."""

    @pytest.mark.asyncio
    async def test_readiness_all_ok(
        self,
        client: AsyncClient,
        mock_scheduler: MagicMock,
        mock_bot: MagicMock,
        store: StateStore,
    ) -> None:
        """Test readiness check when all components are running."""
        set_scheduler(mock_scheduler)
        set_telegram_bot(mock_bot)
        store.set_active(True)
        set_store(store)

        response = await client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data == {"status": "ok", "scheduler": "ok", "bot": "ok", "season": "active", "jobs": 2}

    @pytest.mark.asyncio
    async def test_readiness_nothing_configured(self, client: AsyncClient) -> None:
        """Test readiness check before startup."""
        set_scheduler(None)
        set_telegram_bot(None)
        set_store(None)

        response = await client.get("/health/ready")

        data = response.json()
        assert data["status"] == "degraded"
        assert data["scheduler"] == "not configured"
        assert data["bot"] == "not configured"
        assert data["season"] == "unknown"

    @pytest.mark.asyncio
    async def test_readiness_scheduler_stopped(
        self,
        client: AsyncClient,
        mock_scheduler: MagicMock,
        store: StateStore,
    ) -> None:
        """Test readiness check when scheduler is stopped."""
        mock_scheduler.is_running = False
        set_scheduler(mock_scheduler)
        set_store(store)

        response = await client.get("/health/ready")

        data = response.json()
        assert data["status"] == "degraded"
        assert data["scheduler"] == "stopped"
        assert data["season"] == "idle"
        assert data["jobs"] == 0

    @pytest.mark.asyncio
    async def test_readiness_without_bot_is_ok(
        self,
        client: AsyncClient,
        mock_scheduler: MagicMock,
    ) -> None:
        """Test a missing bot does not degrade readiness."""
        set_scheduler(mock_scheduler)
        set_telegram_bot(None)

        response = await client.get("/health/ready")

        data = response.json()
        assert data["status"] == "ok"
        assert data["bot"] == "not configured"
