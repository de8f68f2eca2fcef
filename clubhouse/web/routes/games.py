"""Game API routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response

from clubhouse.auth.context import AuthContext
from clubhouse.models.api import CreateGameRequest, GameResponse
from clubhouse.web.auth.session import require_auth
from clubhouse.web.dependencies import Repositories, get_repos

router = APIRouter(prefix="/games", tags=["games"])


@router.post("/create", status_code=201)
async def create_game(
    body: CreateGameRequest,
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> str:
    """Create a game and invite every tenant member holding an invited role."""
    return await repos.games.create_game(ctx, body)


@router.delete("/delete-by-id/{game_id}", status_code=204)
async def delete_game(
    game_id: str,
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> Response:
    await repos.games.delete_game(ctx, game_id)
    return Response(status_code=204)


@router.get("/list-for-team/{team_id}", response_model=list[GameResponse])
async def list_games_for_team(
    team_id: str,
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> list[dict[str, Any]]:
    return await repos.games.list_games_for_team(ctx, team_id)
