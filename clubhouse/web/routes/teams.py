"""Team CRUD API routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response

from clubhouse.auth.context import AuthContext
from clubhouse.models.api import CreateTeamRequest, TeamResponse, UpdateTeamRequest
from clubhouse.web.auth.session import require_auth
from clubhouse.web.dependencies import Repositories, get_repos

router = APIRouter(prefix="/teams", tags=["teams"])


@router.post("/create", status_code=201)
async def create_team(
    body: CreateTeamRequest,
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> str:
    return await repos.teams.create(ctx, body.name, body.slug)


@router.get("/list", response_model=list[TeamResponse])
async def list_teams(
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> list[dict[str, Any]]:
    return await repos.teams.list_all(ctx)


@router.get("/get/{team_id}", response_model=TeamResponse)
async def get_team(
    team_id: str,
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> dict[str, Any]:
    return await repos.teams.get(ctx, team_id)


@router.put("/update/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: str,
    body: UpdateTeamRequest,
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> dict[str, Any]:
    return await repos.teams.update(ctx, team_id, name=body.name, slug=body.slug)


@router.delete("/delete-by-id/{team_id}", status_code=204)
async def delete_team(
    team_id: str,
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> Response:
    await repos.teams.delete(ctx, team_id)
    return Response(status_code=204)
