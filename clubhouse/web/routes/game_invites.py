"""Game invite API routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response

from clubhouse.auth.context import AuthContext
from clubhouse.models.api import AnswerInviteRequest, GameInviteResponse, OwnInviteResponse
from clubhouse.web.auth.session import require_auth
from clubhouse.web.dependencies import Repositories, get_repos

router = APIRouter(prefix="/game-invites", tags=["game-invites"])


@router.get("/list-own", response_model=list[OwnInviteResponse])
async def list_own_invites(
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> list[dict[str, Any]]:
    return await repos.game_invites.list_own(ctx)


@router.get("/list-to-game/{game_id}", response_model=list[GameInviteResponse])
async def list_invites_to_game(
    game_id: str,
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> list[dict[str, Any]]:
    return await repos.game_invites.list_for_game(ctx, game_id)


@router.post("/respond", status_code=204)
async def respond_to_invite(
    body: AnswerInviteRequest,
    ctx: AuthContext = Depends(require_auth),
    repos: Repositories = Depends(get_repos),
) -> Response:
    await repos.game_invites.answer(ctx, body.invite_id, body.response)
    return Response(status_code=204)
