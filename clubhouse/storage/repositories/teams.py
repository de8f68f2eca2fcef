"""Team repository using SQLModel + AsyncSession."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlmodel import col, delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from clubhouse.auth.roles import at_least, check_roles
from clubhouse.exceptions import NotFoundError
from clubhouse.models.database import Game, ScheduleEvent, Team, _utc_now
from clubhouse.types import Role

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from clubhouse.auth.context import AuthContext

logger = structlog.get_logger(__name__)


class TeamRepository:
    """Tenant-scoped team store. Mutations need a tenant admin."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    def _to_dict(self, team: Team) -> dict[str, Any]:
        return {
            "id": team.id,
            "tenant_id": team.tenant_id,
            "name": team.name,
            "slug": team.slug,
        }

    async def _get_owned(self, session: AsyncSession, ctx: AuthContext, team_id: str) -> Team:
        stmt = select(Team).where(col(Team.id) == team_id, col(Team.tenant_id) == ctx.tenant_id)
        team = (await session.execute(stmt)).scalars().first()
        if team is None:
            raise NotFoundError("Team not found")
        return team

    async def create(self, ctx: AuthContext, name: str, slug: str) -> str:
        check_roles(ctx, at_least(Role.TENANT_ADMIN))
        async with AsyncSession(self._engine) as session:
            team = Team(tenant_id=ctx.tenant_id, name=name, slug=slug)
            session.add(team)
            team_id = team.id
            await session.commit()
        logger.info("team_created", team_id=team_id, tenant_id=ctx.tenant_id)
        return team_id

    async def list_all(self, ctx: AuthContext) -> list[dict[str, Any]]:
        async with AsyncSession(self._engine) as session:
            stmt = (
                select(Team)
                .where(col(Team.tenant_id) == ctx.tenant_id)
                .order_by(col(Team.name))
            )
            result = await session.execute(stmt)
            return [self._to_dict(t) for t in result.scalars().all()]

    async def get(self, ctx: AuthContext, team_id: str) -> dict[str, Any]:
        async with AsyncSession(self._engine) as session:
            return self._to_dict(await self._get_owned(session, ctx, team_id))

    async def update(
        self, ctx: AuthContext, team_id: str, name: str | None = None, slug: str | None = None
    ) -> dict[str, Any]:
        check_roles(ctx, at_least(Role.TENANT_ADMIN))
        async with AsyncSession(self._engine) as session:
            team = await self._get_owned(session, ctx, team_id)
            if name is not None:
                team.name = name
            if slug is not None:
                team.slug = slug
            team.updated_at = _utc_now()
            session.add(team)
            result = self._to_dict(team)
            await session.commit()
        return result

    async def delete(self, ctx: AuthContext, team_id: str) -> None:
        """Delete a team; its games and their invites cascade in the store."""
        check_roles(ctx, at_least(Role.TENANT_ADMIN))
        async with AsyncSession(self._engine) as session:
            team = await self._get_owned(session, ctx, team_id)
            event_ids = list(
                (await session.execute(select(Game.event_id).where(col(Game.team_id) == team_id)))
                .scalars()
                .all()
            )
            await session.delete(team)
            await session.flush()
            if event_ids:
                await session.execute(
                    delete(ScheduleEvent).where(col(ScheduleEvent.id).in_(event_ids))
                )
            await session.commit()
        logger.info("team_deleted", team_id=team_id, tenant_id=ctx.tenant_id, games=len(event_ids))
