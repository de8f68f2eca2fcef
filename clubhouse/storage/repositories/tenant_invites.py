"""Tenant invite repository — join links for new members."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlmodel import col, delete
from sqlmodel.ext.asyncio.session import AsyncSession

from clubhouse.auth.roles import at_least, check_roles
from clubhouse.exceptions import NotFoundError
from clubhouse.models.database import TenantInvite
from clubhouse.storage.ids import IdentifierAllocator
from clubhouse.types import Role

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from clubhouse.auth.context import AuthContext

logger = structlog.get_logger(__name__)

INVITE_TOKEN_LENGTH = 16


class TenantInviteRepository:
    """Invites stay valid until deleted; one link may onboard several users."""

    def __init__(self, engine: AsyncEngine, allocator: IdentifierAllocator | None = None) -> None:
        self._engine = engine
        self._allocator = allocator or IdentifierAllocator(length=INVITE_TOKEN_LENGTH)

    async def create(self, ctx: AuthContext) -> str:
        check_roles(ctx, at_least(Role.TENANT_ADMIN))
        async with AsyncSession(self._engine) as session:
            invite_id = await self._allocator.allocate(
                session, TenantInvite, tenant_id=ctx.tenant_id
            )
            await session.commit()
        logger.info("tenant_invite_created", tenant_id=ctx.tenant_id)
        return invite_id

    async def delete(self, ctx: AuthContext, invite_id: str) -> None:
        check_roles(ctx, at_least(Role.TENANT_ADMIN))
        async with AsyncSession(self._engine) as session:
            stmt = (
                delete(TenantInvite)
                .where(
                    col(TenantInvite.id) == invite_id,
                    col(TenantInvite.tenant_id) == ctx.tenant_id,
                )
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError("Invite not found")
            await session.commit()
        logger.info("tenant_invite_deleted", tenant_id=ctx.tenant_id)
