"""Authentication routes — login, signup flows and logout."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import SQLAlchemyError

from clubhouse.exceptions import UnauthorizedError
from clubhouse.models.api import (
    LoginRequest,
    SignUpViaInviteRequest,
    SignUpWithNewTenantRequest,
)
from clubhouse.web.auth.session import (
    SESSION_COOKIE,
    expire_session_cookie,
    set_session_cookie,
)
from clubhouse.web.dependencies import Repositories, get_repos

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/log-in")
async def log_in(
    body: LoginRequest,
    response: Response,
    repos: Repositories = Depends(get_repos),
) -> str:
    """Exchange credentials for a session cookie. Returns the user id."""
    user_id = await repos.users.authenticate(body.username, body.password)
    if user_id is None:
        raise UnauthorizedError("Invalid username or password")

    token = await repos.sessions.create(user_id)
    set_session_cookie(response, token, repos.sessions.ttl)
    logger.info("user_logged_in", user_id=user_id)
    return user_id


@router.post("/sign-up-with-new-tenant", status_code=201)
async def sign_up_with_new_tenant(
    body: SignUpWithNewTenantRequest,
    response: Response,
    repos: Repositories = Depends(get_repos),
) -> str:
    user_id, token = await repos.tenants.sign_up_with_new_tenant(
        username=body.username, password=body.password, tenant_title=body.tenant_title
    )
    set_session_cookie(response, token, repos.sessions.ttl)
    return user_id


@router.post("/sign-up-via-invite/{invite_id}", status_code=201)
async def sign_up_via_invite(
    invite_id: str,
    body: SignUpViaInviteRequest,
    response: Response,
    repos: Repositories = Depends(get_repos),
) -> str:
    user_id, token = await repos.tenants.sign_up_via_invite(
        invite_id, username=body.username, password=body.password
    )
    set_session_cookie(response, token, repos.sessions.ttl)
    return user_id


@router.post("/log-out", status_code=204)
async def log_out(request: Request, repos: Repositories = Depends(get_repos)) -> Response:
    """Invalidate the session. The client's cookie is expired regardless."""
    response = Response(status_code=204)
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        try:
            await repos.sessions.destroy(token)
        except SQLAlchemyError:
            logger.exception("session_destroy_failed")
    expire_session_cookie(response)
    return response
