"""Cookie-based session authentication."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import structlog
from fastapi import Request, Response
from sqlalchemy.exc import SQLAlchemyError

from clubhouse.auth.context import AuthContext
from clubhouse.exceptions import UnauthorizedError

logger = structlog.get_logger(__name__)

SESSION_COOKIE = "session_id"
EXPIRED_SESSION_COOKIE = (
    "session_id=; HttpOnly; SameSite=Strict; Secure; Expires=1 Jan 1970 00:00:00 GMT"
)


def set_session_cookie(response: Response, token: str, ttl: timedelta) -> None:
    """Deliver a session token; the expiry mirrors the server-side TTL."""
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        expires=datetime.now(UTC) + ttl,
        httponly=True,
        secure=True,
        samesite="strict",
    )


def expire_session_cookie(response: Response) -> None:
    """Overwrite the client's session cookie with an already-expired value."""
    response.headers.append("set-cookie", EXPIRED_SESSION_COOKIE)


async def require_auth(request: Request) -> AuthContext:
    """Resolve the session cookie into an ``AuthContext`` or reject with 401.

    A cookie that does not resolve is answered with an expired replacement so
    the client stops resending it. Roles are not inspected here.
    """
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        logger.debug("session_cookie_missing", path=request.url.path)
        raise UnauthorizedError("Not logged in")

    try:
        ctx = await request.app.state.repos.sessions.resolve(token)
    except SQLAlchemyError:
        logger.exception("session_resolve_failed")
        ctx = None

    if ctx is None:
        logger.info("session_rejected", path=request.url.path)
        raise UnauthorizedError(clear_cookie=True)

    request.state.auth = ctx
    structlog.contextvars.bind_contextvars(user_id=ctx.user_id, tenant_id=ctx.tenant_id)
    return ctx
