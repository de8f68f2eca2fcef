"""Role assignment repository."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

import structlog
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from clubhouse.auth.roles import at_least, check_roles
from clubhouse.exceptions import NotFoundError
from clubhouse.models.database import RoleAssignment, User
from clubhouse.storage.database import is_unique_violation
from clubhouse.types import Role

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from clubhouse.auth.context import AuthContext

logger = structlog.get_logger(__name__)


def grant_whitelist(role: Role) -> frozenset[Role]:
    """Roles allowed to grant or revoke ``role``."""
    if role is Role.SUPER_ADMIN:
        return at_least(Role.SUPER_ADMIN)
    return at_least(Role.TENANT_ADMIN)


class RoleRepository:
    """Grants and revokes roles inside the caller's tenant."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def _require_tenant_user(
        self, session: AsyncSession, ctx: AuthContext, user_id: str
    ) -> None:
        stmt = select(User.id).where(
            col(User.id) == user_id, col(User.tenant_id) == ctx.tenant_id
        )
        if (await session.execute(stmt)).first() is None:
            raise NotFoundError("User not found")

    async def _find_assignment(
        self, session: AsyncSession, user_id: str, role: Role
    ) -> RoleAssignment | None:
        stmt = select(RoleAssignment).where(
            col(RoleAssignment.user_id) == user_id,
            col(RoleAssignment.role) == role.value,
        )
        return (await session.execute(stmt)).scalars().first()

    async def assign(self, ctx: AuthContext, user_id: str, role: Role) -> str:
        """Grant ``role``; granting a role the user already holds is a no-op."""
        check_roles(ctx, grant_whitelist(role))
        async with AsyncSession(self._engine) as session:
            await self._require_tenant_user(session, ctx, user_id)
            existing = await self._find_assignment(session, user_id, role)
            if existing is not None:
                return existing.id

            assignment = RoleAssignment(user_id=user_id, role=role.value)
            try:
                async with session.begin_nested():
                    session.add(assignment)
                    await session.flush()
            except IntegrityError as exc:
                if not is_unique_violation(exc):
                    raise
                # A concurrent grant of the same role committed first
                existing = await self._find_assignment(session, user_id, role)
                if existing is None:
                    raise
                logger.debug("role_already_assigned", user_id=user_id, role=role.value)
                return existing.id
            assignment_id = assignment.id
            await session.commit()

        logger.info("role_assigned", user_id=user_id, role=role.value, by=ctx.user_id)
        return assignment_id

    async def unassign(self, ctx: AuthContext, user_id: str, role: Role) -> None:
        check_roles(ctx, grant_whitelist(role))
        async with AsyncSession(self._engine) as session:
            await self._require_tenant_user(session, ctx, user_id)
            await session.execute(
                delete(RoleAssignment).where(
                    col(RoleAssignment.user_id) == user_id,
                    col(RoleAssignment.role) == role.value,
                )
            )
            await session.commit()
        logger.info("role_unassigned", user_id=user_id, role=role.value, by=ctx.user_id)

    async def list_for_tenant(self, ctx: AuthContext) -> dict[str, list[Role]]:
        """Map each role-holding user of the tenant to their roles."""
        check_roles(ctx, at_least(Role.TENANT_ADMIN))
        async with AsyncSession(self._engine) as session:
            stmt = (
                select(RoleAssignment.user_id, RoleAssignment.role)
                .join(User, col(User.id) == col(RoleAssignment.user_id))
                .where(col(User.tenant_id) == ctx.tenant_id)
                .order_by(col(RoleAssignment.user_id), col(RoleAssignment.role))
            )
            rows = (await session.execute(stmt)).all()

        by_user: dict[str, list[Role]] = defaultdict(list)
        for user_id, role in rows:
            by_user[user_id].append(Role(role))
        return dict(by_user)

    async def list_own(self, ctx: AuthContext) -> list[Role]:
        async with AsyncSession(self._engine) as session:
            stmt = (
                select(RoleAssignment.role)
                .where(col(RoleAssignment.user_id) == ctx.user_id)
                .order_by(col(RoleAssignment.role))
            )
            return [Role(role) for role in (await session.execute(stmt)).scalars().all()]
