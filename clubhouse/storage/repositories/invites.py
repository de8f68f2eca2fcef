"""Game invite repository — listing and answering invites."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import update
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from clubhouse.exceptions import NotFoundError
from clubhouse.models.database import Game, GameInvite, Team, User, _utc_now

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from clubhouse.auth.context import AuthContext
    from clubhouse.types import AnswerableResponse

logger = structlog.get_logger(__name__)


class GameInviteRepository:
    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def list_own(self, ctx: AuthContext) -> list[dict[str, Any]]:
        async with AsyncSession(self._engine) as session:
            stmt = (
                select(GameInvite.id, GameInvite.game_id, Game.opponent, GameInvite.response)
                .join(Game, col(Game.id) == col(GameInvite.game_id))
                .where(col(GameInvite.user_id) == ctx.user_id)
                .order_by(col(Game.created_at).desc())
            )
            rows = (await session.execute(stmt)).all()
        return [
            {"invite_id": invite_id, "game_id": game_id, "opponent": opponent, "response": response}
            for invite_id, game_id, opponent, response in rows
        ]

    async def list_for_game(self, ctx: AuthContext, game_id: str) -> list[dict[str, Any]]:
        """Invites of a game in the caller's tenant, by username."""
        async with AsyncSession(self._engine) as session:
            owned = (
                select(Game.id)
                .join(Team, col(Team.id) == col(Game.team_id))
                .where(col(Game.id) == game_id, col(Team.tenant_id) == ctx.tenant_id)
            )
            if (await session.execute(owned)).first() is None:
                raise NotFoundError("Game not found")

            stmt = (
                select(User.id, User.username, GameInvite.id, GameInvite.response)
                .join(User, col(User.id) == col(GameInvite.user_id))
                .where(col(GameInvite.game_id) == game_id)
                .order_by(col(User.username))
            )
            rows = (await session.execute(stmt)).all()
        return [
            {"user_id": user_id, "username": username, "invite_id": invite_id, "response": response}
            for user_id, username, invite_id, response in rows
        ]

    async def answer(self, ctx: AuthContext, invite_id: str, response: AnswerableResponse) -> None:
        """Record the caller's answer to one of their own invites.

        The update matches the invite id, the invite's owner and the caller
        together; anything else leaves every invite untouched and raises
        ``NotFoundError``.
        """
        caller = select(User.id).where(
            col(User.id) == ctx.user_id, col(User.tenant_id) == ctx.tenant_id
        )
        stmt = (
            update(GameInvite)
            .where(
                col(GameInvite.id) == invite_id,
                col(GameInvite.user_id) == ctx.user_id,
                col(GameInvite.user_id).in_(caller),
            )
            .values(response=response.value, updated_at=_utc_now())
            .execution_options(synchronize_session=False)
        )
        async with AsyncSession(self._engine) as session:
            result = await session.execute(stmt)
            if result.rowcount == 0:
                logger.info("invite_answer_rejected", invite_id=invite_id, user_id=ctx.user_id)
                raise NotFoundError("Invite not found")
            await session.commit()
        logger.info("invite_answered", invite_id=invite_id, response=response.value)
