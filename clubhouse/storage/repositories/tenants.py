"""Tenant repository — signup flows and tenant teardown."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlmodel import col, delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from clubhouse.auth.roles import at_least, check_roles
from clubhouse.exceptions import NotFoundError
from clubhouse.models.database import (
    Game,
    RoleAssignment,
    ScheduleEvent,
    Team,
    Tenant,
    TenantInvite,
)
from clubhouse.storage.ids import IdentifierAllocator
from clubhouse.storage.repositories.users import add_user
from clubhouse.types import Role

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from clubhouse.auth.context import AuthContext
    from clubhouse.storage.repositories.sessions import SessionRepository

logger = structlog.get_logger(__name__)


class TenantRepository:
    """Multi-row tenant writes, each in a single transaction."""

    def __init__(
        self,
        engine: AsyncEngine,
        sessions: SessionRepository,
        allocator: IdentifierAllocator | None = None,
    ) -> None:
        self._engine = engine
        self._sessions = sessions
        self._allocator = allocator or IdentifierAllocator()

    async def sign_up_with_new_tenant(
        self, username: str, password: str, tenant_title: str
    ) -> tuple[str, str]:
        """Create tenant, admin user, role and session atomically.

        Returns ``(user_id, session_token)``.
        """
        async with AsyncSession(self._engine) as session:
            tenant_id = await self._allocator.allocate(session, Tenant, title=tenant_title)
            user_id = await add_user(
                session, username=username, password=password, tenant_id=tenant_id
            )
            session.add(RoleAssignment(user_id=user_id, role=Role.TENANT_ADMIN.value))
            token = await self._sessions.add(session, user_id)
            await session.commit()

        logger.info("tenant_signed_up", tenant_id=tenant_id, user_id=user_id)
        return user_id, token

    async def sign_up_via_invite(
        self, invite_id: str, username: str, password: str
    ) -> tuple[str, str]:
        """Join the invite's tenant. The new user starts with no roles."""
        async with AsyncSession(self._engine) as session:
            invite = await session.get(TenantInvite, invite_id)
            if invite is None:
                raise NotFoundError("Invite not found")
            tenant_id = invite.tenant_id
            user_id = await add_user(
                session, username=username, password=password, tenant_id=tenant_id
            )
            token = await self._sessions.add(session, user_id)
            await session.commit()

        logger.info(
            "user_signed_up_via_invite",
            tenant_id=tenant_id,
            user_id=user_id,
            followup="assign_role",
        )
        return user_id, token

    async def delete_own_tenant(self, ctx: AuthContext) -> None:
        """Delete the caller's tenant with all of its users, teams and games."""
        check_roles(ctx, at_least(Role.TENANT_ADMIN))
        async with AsyncSession(self._engine) as session:
            # Events are referenced by games, so collect them before the cascade
            event_ids_stmt = (
                select(Game.event_id)
                .join(Team, col(Team.id) == col(Game.team_id))
                .where(col(Team.tenant_id) == ctx.tenant_id)
            )
            event_ids = list((await session.execute(event_ids_stmt)).scalars().all())

            stmt = (
                delete(Tenant)
                .where(col(Tenant.id) == ctx.tenant_id)
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError("Tenant not found")
            if event_ids:
                await session.execute(
                    delete(ScheduleEvent).where(col(ScheduleEvent.id).in_(event_ids))
                )
            await session.commit()

        logger.info("tenant_deleted", tenant_id=ctx.tenant_id, events=len(event_ids))
