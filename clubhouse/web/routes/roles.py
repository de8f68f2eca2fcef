"""Role assignment API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from clubhouse.auth.context import AuthContext
from clubhouse.models.api import RoleAssignmentRequest
from clubhouse.types import Role
from clubhouse.web.auth.session import require_auth
from clubhouse.web.dependencies import Repositories, get_repos

router = APIRouter(prefix="/roles", tags=["roles"])


@router.post("/assign", status_code=201)
async def assign_role(
    body: RoleAssignmentRequest,
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> str:
    """Grant a role to a user of the caller's tenant. Returns the assignment id."""
    return await repos.roles.assign(ctx, body.user_id, body.role)


@router.delete("/unassign", status_code=204)
async def unassign_role(
    body: RoleAssignmentRequest,
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> Response:
    await repos.roles.unassign(ctx, body.user_id, body.role)
    return Response(status_code=204)


@router.get("/list")
async def list_roles(
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> dict[str, list[Role]]:
    return await repos.roles.list_for_tenant(ctx)


@router.get("/list-own")
async def list_own_roles(
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> list[Role]:
    return await repos.roles.list_own(ctx)
