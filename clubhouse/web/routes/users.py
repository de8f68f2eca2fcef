"""User management API routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response

from clubhouse.auth.context import AuthContext
from clubhouse.models.api import CreateUserRequest, UserResponse
from clubhouse.web.auth.session import expire_session_cookie, require_auth
from clubhouse.web.dependencies import Repositories, get_repos

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/list", response_model=list[UserResponse])
async def list_users(
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> list[dict[str, Any]]:
    return await repos.users.list_users(ctx)


@router.post("/create", status_code=201)
async def create_user(
    body: CreateUserRequest,
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> str:
    return await repos.users.create_user(ctx, body.username, body.password)


@router.delete("/delete-by-id/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> Response:
    await repos.users.delete_user(ctx, user_id)
    return Response(status_code=204)


@router.delete("/delete-own", status_code=204)
async def delete_own_user(
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> Response:
    """Delete the caller's account; their sessions go with it."""
    await repos.users.delete_own_user(ctx)
    response = Response(status_code=204)
    expire_session_cookie(response)
    return response
