"""Application factory, health and error mapping."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from clubhouse.config.settings import Settings
from clubhouse.exceptions import BootstrapError
from clubhouse.web.app import create_app, lifespan


@pytest.mark.integration
class TestApp:
    def test_routes_mounted_under_api(self, app: FastAPI) -> None:
        paths = set(app.openapi()["paths"])
        assert "/api/log-in" in paths
        assert "/api/games/create" in paths
        assert "/api/game-invites/respond" in paths
        assert "/api/tenants/delete-own" in paths
        assert "/api/health" in paths

    async def test_health(self, client: AsyncClient) -> None:
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"
        assert resp.json()["database"] == "connected"

    async def test_request_id_header(self, client: AsyncClient) -> None:
        resp = await client.get("/api/health")
        assert "x-request-id" in resp.headers

    async def test_store_errors_become_500(
        self, app: FastAPI, api_sign_up, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _, token = await api_sign_up()

        async def _fail(*_args: object) -> None:
            raise OperationalError("SELECT", {}, Exception("connection reset"))

        monkeypatch.setattr(app.state.repos.users, "list_users", _fail)
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="https://test") as client:
            resp = await client.get("/api/users/list", headers={"Cookie": f"session_id={token}"})
        assert resp.status_code == 500
        assert resp.json() == {"detail": "Unexpected Error"}


@pytest.mark.integration
class TestLifespan:
    async def test_startup_bootstraps(self, app: FastAPI) -> None:
        async with lifespan(app):
            repos = app.state.repos
            assert await repos.users.authenticate("root", "root-secret-password") is not None

    async def test_startup_fails_without_bootstrap_values(self, async_engine) -> None:
        app = create_app(Settings(database_url="sqlite+aiosqlite:///:memory:"), engine=async_engine)
        with pytest.raises(BootstrapError):
            async with lifespan(app):
                pass
