"""Login, signup, logout and the session gate over HTTP."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from clubhouse.web.auth.session import EXPIRED_SESSION_COOKIE


def _cookie(token: str) -> dict[str, str]:
    return {"Cookie": f"session_id={token}"}


@pytest.mark.integration
class TestLogIn:
    async def test_log_in_sets_secure_cookie(self, client: AsyncClient, api_sign_up) -> None:
        user_id, _ = await api_sign_up()
        resp = await client.post(
            "/api/log-in", json={"username": "admin", "password": "admin-password"}
        )
        assert resp.status_code == 200
        assert resp.json() == user_id
        set_cookie = resp.headers["set-cookie"]
        assert set_cookie.startswith("session_id=")
        assert "HttpOnly" in set_cookie
        assert "Secure" in set_cookie
        assert "samesite=strict" in set_cookie.lower()
        assert "expires=" in set_cookie.lower()
        assert len(resp.cookies["session_id"]) == 16

    async def test_wrong_password(self, client: AsyncClient, api_sign_up) -> None:
        await api_sign_up()
        resp = await client.post("/api/log-in", json={"username": "admin", "password": "nope"})
        assert resp.status_code == 401
        assert "set-cookie" not in resp.headers

    async def test_unknown_user(self, client: AsyncClient) -> None:
        resp = await client.post("/api/log-in", json={"username": "ghost", "password": "x"})
        assert resp.status_code == 401
        assert "set-cookie" not in resp.headers

    async def test_missing_fields(self, client: AsyncClient) -> None:
        resp = await client.post("/api/log-in", json={"username": "admin"})
        assert resp.status_code == 422


@pytest.mark.integration
class TestSignUp:
    async def test_new_tenant_has_exactly_one_tenant_admin(
        self, client: AsyncClient, api_sign_up
    ) -> None:
        user_id, token = await api_sign_up()
        resp = await client.get("/api/roles/list", headers=_cookie(token))
        assert resp.status_code == 200
        assert resp.json() == {user_id: ["tenant_admin"]}

    async def test_duplicate_username_conflicts(self, client: AsyncClient, api_sign_up) -> None:
        await api_sign_up()
        resp = await client.post(
            "/api/sign-up-with-new-tenant",
            json={"username": "admin", "password": "pw", "tenant_title": "Other"},
        )
        assert resp.status_code == 409
        assert "set-cookie" not in resp.headers

    async def test_via_invite(self, client: AsyncClient, api_sign_up) -> None:
        admin_id, admin_token = await api_sign_up()
        resp = await client.post("/api/invites-to-tenant/create", headers=_cookie(admin_token))
        assert resp.status_code == 201
        invite_id = resp.json()

        resp = await client.post(
            f"/api/sign-up-via-invite/{invite_id}",
            json={"username": "newbie", "password": "newbie-password"},
        )
        assert resp.status_code == 201
        newbie_id = resp.json()
        newbie_token = resp.cookies["session_id"]

        resp = await client.get("/api/roles/list-own", headers=_cookie(newbie_token))
        assert resp.status_code == 200
        assert resp.json() == []

        resp = await client.get("/api/users/list", headers=_cookie(admin_token))
        assert {u["id"] for u in resp.json()} == {admin_id, newbie_id}

    async def test_via_unknown_invite(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/sign-up-via-invite/nope", json={"username": "x", "password": "y"}
        )
        assert resp.status_code == 404


@pytest.mark.integration
class TestSessionGate:
    async def test_missing_cookie_never_reaches_handler(
        self, client: AsyncClient, app: FastAPI, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls: list[object] = []

        async def _spy(*args: object) -> list[object]:
            calls.append(args)
            return []

        app_repos = app.state.repos
        monkeypatch.setattr(app_repos.users, "list_users", _spy)
        resp = await client.get("/api/users/list")
        assert resp.status_code == 401
        assert calls == []

    async def test_unknown_cookie_is_expired(self, client: AsyncClient) -> None:
        resp = await client.get("/api/users/list", headers=_cookie("not-a-session"))
        assert resp.status_code == 401
        assert resp.headers["set-cookie"] == EXPIRED_SESSION_COOKIE

    async def test_log_out_invalidates_session(self, client: AsyncClient, api_sign_up) -> None:
        _, token = await api_sign_up()
        resp = await client.get("/api/users/list", headers=_cookie(token))
        assert resp.status_code == 200

        resp = await client.post("/api/log-out", headers=_cookie(token))
        assert resp.status_code == 204
        assert resp.headers["set-cookie"] == EXPIRED_SESSION_COOKIE

        resp = await client.get("/api/users/list", headers=_cookie(token))
        assert resp.status_code == 401
        assert resp.headers["set-cookie"] == EXPIRED_SESSION_COOKIE

    async def test_log_out_without_cookie(self, client: AsyncClient) -> None:
        resp = await client.post("/api/log-out")
        assert resp.status_code == 204
        assert resp.headers["set-cookie"] == EXPIRED_SESSION_COOKIE

    async def test_log_out_expires_cookie_even_if_store_fails(
        self, client: AsyncClient, app: FastAPI, api_sign_up, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _, token = await api_sign_up()

        async def _fail(_token: str) -> None:
            raise OperationalError("DELETE", {}, Exception("database is gone"))

        app_repos = app.state.repos
        monkeypatch.setattr(app_repos.sessions, "destroy", _fail)
        resp = await client.post("/api/log-out", headers=_cookie(token))
        assert resp.status_code == 204
        assert resp.headers["set-cookie"] == EXPIRED_SESSION_COOKIE
