"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from clubhouse.auth import passwords
from clubhouse.config.settings import Settings
from clubhouse.storage.database import configure_sqlite, init_db
from clubhouse.types import Role
from clubhouse.web.app import create_app
from clubhouse.web.dependencies import Repositories, build_repositories

if TYPE_CHECKING:
    from fastapi import FastAPI
    from sqlalchemy.ext.asyncio import AsyncEngine

    from clubhouse.auth.context import AuthContext

SQLITE_URL = "sqlite+aiosqlite:///:memory:"


def _auth_headers(token: str) -> dict[str, str]:
    return {"Cookie": f"session_id={token}"}


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep password hashing cheap in tests."""
    monkeypatch.setattr(passwords, "BCRYPT_ROUNDS", 4)


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        database_url=SQLITE_URL,
        debug=True,
        log_level="WARNING",
        initial_tenant="Root Club",
        initial_user="root",
        initial_password="root-secret-password",
    )


@pytest.fixture()
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(SQLITE_URL, poolclass=StaticPool)
    configure_sqlite(engine)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture()
def repos(async_engine: AsyncEngine, settings: Settings) -> Repositories:
    return build_repositories(async_engine, settings)


@pytest.fixture()
def app(async_engine: AsyncEngine, settings: Settings) -> FastAPI:
    """Create a fresh app instance bound to the test engine."""
    return create_app(settings, engine=async_engine)


@pytest.fixture()
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    # The session cookie is Secure, so talk https to keep it in the jar
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="https://test") as client:
        yield client


@pytest.fixture()
def sign_up(repos: Repositories) -> Callable[..., Awaitable[AuthContext]]:
    """Create a tenant with its admin and return the admin's resolved context."""

    async def _sign_up(username: str = "admin", tenant_title: str = "Club") -> AuthContext:
        _, token = await repos.tenants.sign_up_with_new_tenant(
            username=username, password="admin-password", tenant_title=tenant_title
        )
        ctx = await repos.sessions.resolve(token)
        assert ctx is not None
        return ctx

    return _sign_up


@pytest.fixture()
def add_member(repos: Repositories) -> Callable[..., Awaitable[AuthContext]]:
    """Create a user in the admin's tenant holding ``roles`` and return their context."""

    async def _add_member(admin: AuthContext, username: str, *roles: Role) -> AuthContext:
        user_id = await repos.users.create_user(admin, username, "member-password")
        for role in roles:
            await repos.roles.assign(admin, user_id, role)
        token = await repos.sessions.create(user_id)
        ctx = await repos.sessions.resolve(token)
        assert ctx is not None
        return ctx

    return _add_member


@pytest.fixture()
def api_sign_up(client: AsyncClient) -> Callable[..., Awaitable[tuple[str, str]]]:
    """Sign up through the HTTP API; returns ``(user_id, session_token)``."""

    async def _api_sign_up(username: str = "admin", tenant_title: str = "Club") -> tuple[str, str]:
        resp = await client.post(
            "/api/sign-up-with-new-tenant",
            json={"username": username, "password": "admin-password", "tenant_title": tenant_title},
        )
        assert resp.status_code == 201, resp.text
        token = resp.cookies["session_id"]
        client.cookies.clear()
        return resp.json(), token

    return _api_sign_up


@pytest.fixture()
def api_add_member(client: AsyncClient) -> Callable[..., Awaitable[tuple[str, str]]]:
    """Create, grant and log in a tenant member over HTTP; returns ``(user_id, token)``."""

    async def _api_add_member(admin_token: str, username: str, *roles: str) -> tuple[str, str]:
        headers = _auth_headers(admin_token)
        resp = await client.post(
            "/api/users/create",
            json={"username": username, "password": "member-password"},
            headers=headers,
        )
        assert resp.status_code == 201, resp.text
        user_id = resp.json()
        for role in roles:
            resp = await client.post(
                "/api/roles/assign", json={"user_id": user_id, "role": role}, headers=headers
            )
            assert resp.status_code == 201, resp.text
        resp = await client.post(
            "/api/log-in", json={"username": username, "password": "member-password"}
        )
        assert resp.status_code == 200, resp.text
        token = resp.cookies["session_id"]
        client.cookies.clear()
        return user_id, token

    return _api_add_member
