"""Tests for application wiring: settings, app instance, routes and migrations layout."""

import os

import pytest
from httpx import ASGITransport, AsyncClient


class TestSettings:
    """Test configuration defaults."""

    def test_trash_defaults(self):
        from pawlegal.config import Settings

        settings = Settings(_env_file=None)
        assert settings.TRASH_RETENTION_DAYS == 30
        assert settings.TRASH_EXPIRING_SOON_DAYS == 7
        assert settings.TRASH_PURGE_INTERVAL_HOURS == 24.0
        assert settings.DISPLAY_TIMEZONE == "Europe/Paris"

    def test_async_database_url(self):
        from pawlegal.config import Settings

        settings = Settings(_env_file=None, DATABASE_URL="postgresql://u:p@db:5432/pawlegal")
        assert settings.async_database_url == "postgresql+asyncpg://u:p@db:5432/pawlegal"


class TestFastAPIApp:
    """Test FastAPI application setup."""

    def test_app_instance_exists(self):
        from pawlegal.main import app

        assert app.title == "Paw Legal"
        assert app.version == "0.1.0"

    def test_routes_are_mounted(self):
        from pawlegal.main import app

        paths = {route.path for route in app.routes}
        assert {
            "/api/trash",
            "/api/trash/stats",
            "/api/trash/restore/{item_id}",
            "/api/logs/dlog/pdf",
            "/api/dossiers/{dossier_id}/recap/pdf",
            "/api/documents/{document_id}",
        } <= paths

    @pytest.mark.asyncio
    async def test_health_check_endpoint(self):
        """GET /api/health should return status ok."""
        from pawlegal.main import app

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_cors_allows_localhost_3000(self):
        """CORS should allow requests from http://localhost:3000."""
        from pawlegal.main import app

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.options(
                "/api/health",
                headers={
                    "Origin": "http://localhost:3000",
                    "Access-Control-Request-Method": "GET",
                },
            )

        assert response.status_code == 200
        assert "http://localhost:3000" in response.headers.get("access-control-allow-origin", "")


class TestAlembicConfig:
    """Test Alembic configuration structure."""

    def test_alembic_files_exist(self):
        backend = os.path.dirname(os.path.dirname(__file__))
        assert os.path.isfile(os.path.join(backend, "alembic.ini"))
        assert os.path.isfile(os.path.join(backend, "alembic", "env.py"))
        assert os.path.isfile(os.path.join(backend, "alembic", "versions", "001_initial_schema.py"))
