"""Tenant and tenant invite API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from clubhouse.auth.context import AuthContext
from clubhouse.web.auth.session import expire_session_cookie, require_auth
from clubhouse.web.dependencies import Repositories, get_repos

router = APIRouter(tags=["tenants"])


@router.delete("/tenants/delete-own", status_code=204)
async def delete_own_tenant(
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> Response:
    """Delete the caller's tenant and everything in it, the caller included."""
    await repos.tenants.delete_own_tenant(ctx)
    response = Response(status_code=204)
    expire_session_cookie(response)
    return response


@router.post("/invites-to-tenant/create", status_code=201)
async def create_tenant_invite(
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> str:
    """Create a join link for the caller's tenant. Returns the invite id."""
    return await repos.tenant_invites.create(ctx)


@router.delete("/invites-to-tenant/delete-by-id/{invite_id}", status_code=204)
async def delete_tenant_invite(
    invite_id: str,
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> Response:
    await repos.tenant_invites.delete(ctx, invite_id)
    return Response(status_code=204)
