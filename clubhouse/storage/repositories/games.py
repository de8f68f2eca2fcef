"""Game repository — game creation with invite fan-out.

Creating a game writes a schedule event, the game and one pending invite per
invited tenant member in a single transaction. Nothing is visible unless all
of it commits.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from itertools import groupby
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import insert
from sqlmodel import col, delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from clubhouse.auth.roles import at_least, check_roles
from clubhouse.exceptions import NotFoundError
from clubhouse.models.database import (
    Game,
    GameInvite,
    RoleAssignment,
    ScheduleEvent,
    Team,
    User,
    _as_aware_utc,
    _new_uuid,
    _utc_now,
)
from clubhouse.types import InviteResponse, Role

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from clubhouse.auth.context import AuthContext
    from clubhouse.models.api import CreateGameRequest

logger = structlog.get_logger(__name__)

GAME_MANAGERS = at_least(Role.COACH)


def dedupe_adjacent(user_ids: Iterable[str]) -> list[str]:
    """Collapse runs of the same id, keeping first-seen order."""
    return [user_id for user_id, _ in groupby(user_ids)]


class GameRepository:
    """Tenant-scoped game store."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def _require_team(self, session: AsyncSession, ctx: AuthContext, team_id: str) -> None:
        # Foreign teams are reported as missing so their existence is not leaked
        stmt = select(Team.id).where(col(Team.id) == team_id, col(Team.tenant_id) == ctx.tenant_id)
        if (await session.execute(stmt)).first() is None:
            raise NotFoundError("Team not found")

    async def _resolve_invitees(
        self, session: AsyncSession, tenant_id: str, roles: Sequence[Role]
    ) -> list[str]:
        """Ids of tenant members holding any of ``roles``, one per user, by username."""
        if not roles:
            return []
        stmt = (
            select(User.id)
            .join(RoleAssignment, col(RoleAssignment.user_id) == col(User.id))
            .where(
                col(User.tenant_id) == tenant_id,
                col(RoleAssignment.role).in_([role.value for role in roles]),
            )
            .order_by(col(User.username), col(User.id))
        )
        rows = (await session.execute(stmt)).scalars().all()
        return dedupe_adjacent(rows)

    async def _insert_invites(
        self, session: AsyncSession, game_id: str, user_ids: Sequence[str]
    ) -> None:
        """Write every invite of a game in one multi-row INSERT."""
        if not user_ids:
            return
        now = _utc_now()
        rows = [
            {
                "id": _new_uuid(),
                "user_id": user_id,
                "game_id": game_id,
                "response": InviteResponse.PENDING.value,
                "updated_at": now,
            }
            for user_id in user_ids
        ]
        await session.execute(insert(GameInvite).values(rows))

    async def create_game(self, ctx: AuthContext, payload: CreateGameRequest) -> str:
        """Create a game and invite everyone in the tenant holding an invited role."""
        check_roles(ctx, GAME_MANAGERS)
        invited_roles = sorted(set(payload.invited_roles))

        async with AsyncSession(self._engine) as session:
            await self._require_team(session, ctx, payload.team_id)

            event = ScheduleEvent(
                start_time=_as_aware_utc(payload.start_time),
                stop_time=_as_aware_utc(payload.stop_time) if payload.stop_time else None,
            )
            session.add(event)
            await session.flush()

            game = Game(
                team_id=payload.team_id,
                opponent=payload.opponent,
                location=payload.location,
                location_kind=payload.location_kind.value,
                event_id=event.id,
                invited_roles=[role.value for role in invited_roles],
            )
            session.add(game)
            await session.flush()
            game_id = game.id

            invitees = await self._resolve_invitees(session, ctx.tenant_id, invited_roles)
            await self._insert_invites(session, game_id, invitees)
            await session.commit()

        logger.info(
            "game_created",
            game_id=game_id,
            team_id=payload.team_id,
            invited_roles=[role.value for role in invited_roles],
            invites=len(invitees),
        )
        return game_id

    async def delete_game(self, ctx: AuthContext, game_id: str) -> None:
        """Delete a game of the caller's tenant; invites go with it via FK cascade."""
        check_roles(ctx, GAME_MANAGERS)
        async with AsyncSession(self._engine) as session:
            stmt = (
                select(Game.event_id)
                .join(Team, col(Team.id) == col(Game.team_id))
                .where(col(Game.id) == game_id, col(Team.tenant_id) == ctx.tenant_id)
            )
            event_id = (await session.execute(stmt)).scalars().first()
            if event_id is None:
                logger.debug("game_not_found", game_id=game_id, tenant_id=ctx.tenant_id)
                raise NotFoundError("Game not found")

            await session.execute(delete(Game).where(col(Game.id) == game_id))
            await session.execute(delete(ScheduleEvent).where(col(ScheduleEvent.id) == event_id))
            await session.commit()

        logger.info("game_deleted", game_id=game_id, tenant_id=ctx.tenant_id)

    async def list_games_for_team(self, ctx: AuthContext, team_id: str) -> list[dict[str, Any]]:
        """Games of a team, latest start first."""
        check_roles(ctx, GAME_MANAGERS)
        async with AsyncSession(self._engine) as session:
            await self._require_team(session, ctx, team_id)
            stmt = (
                select(Game, ScheduleEvent)
                .join(ScheduleEvent, col(ScheduleEvent.id) == col(Game.event_id))
                .where(col(Game.team_id) == team_id)
                .order_by(col(ScheduleEvent.start_time).desc())
            )
            rows = (await session.execute(stmt)).all()

        return [
            {
                "id": game.id,
                "team_id": game.team_id,
                "opponent": game.opponent,
                "start_time": _as_aware_utc(event.start_time),
                "stop_time": _as_aware_utc(event.stop_time) if event.stop_time else None,
                "location": game.location,
                "location_kind": game.location_kind,
            }
            for game, event in rows
        ]
