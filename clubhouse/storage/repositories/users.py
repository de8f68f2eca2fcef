"""User repository — accounts scoped to a tenant."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy.exc import IntegrityError
from sqlmodel import col, delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from clubhouse.auth.passwords import hash_password, verify_password
from clubhouse.auth.roles import at_least, check_roles
from clubhouse.exceptions import ConflictError, NotFoundError
from clubhouse.models.database import User
from clubhouse.storage.database import is_unique_violation
from clubhouse.types import Role

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from clubhouse.auth.context import AuthContext

logger = structlog.get_logger(__name__)


async def add_user(
    session: AsyncSession, *, username: str, password: str, tenant_id: str
) -> str:
    """Stage a user inside the caller's transaction and return its id.

    Raises ``ConflictError`` when the username is taken; the savepoint keeps
    the enclosing transaction usable for the caller to roll back cleanly.
    """
    user = User(username=username, password_hash=hash_password(password), tenant_id=tenant_id)
    try:
        async with session.begin_nested():
            session.add(user)
            await session.flush()
    except IntegrityError as exc:
        if is_unique_violation(exc):
            raise ConflictError("Username is already taken") from exc
        raise
    return user.id


class UserRepository:
    """PostgreSQL-backed user store."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def authenticate(self, username: str, password: str) -> str | None:
        """Return the user id when the credentials match, else ``None``."""
        async with AsyncSession(self._engine) as session:
            stmt = select(User).where(col(User.username) == username)
            result = await session.execute(stmt)
            user = result.scalars().first()
            if user is None or not verify_password(password, user.password_hash):
                logger.info("login_rejected", username=username)
                return None
            return user.id

    async def create_user(self, ctx: AuthContext, username: str, password: str) -> str:
        """Create a user in the caller's tenant. No role is assigned."""
        check_roles(ctx, at_least(Role.TENANT_ADMIN))
        async with AsyncSession(self._engine) as session:
            user_id = await add_user(
                session, username=username, password=password, tenant_id=ctx.tenant_id
            )
            await session.commit()
        logger.info("user_created", user_id=user_id, tenant_id=ctx.tenant_id)
        return user_id

    async def list_users(self, ctx: AuthContext) -> list[dict[str, Any]]:
        async with AsyncSession(self._engine) as session:
            stmt = (
                select(User)
                .where(col(User.tenant_id) == ctx.tenant_id)
                .order_by(col(User.username))
            )
            result = await session.execute(stmt)
            return [{"id": u.id, "username": u.username} for u in result.scalars().all()]

    async def delete_user(self, ctx: AuthContext, user_id: str) -> None:
        """Delete a user of the caller's tenant; sessions, roles and invites cascade."""
        check_roles(ctx, at_least(Role.TENANT_ADMIN))
        async with AsyncSession(self._engine) as session:
            stmt = (
                delete(User)
                .where(col(User.id) == user_id, col(User.tenant_id) == ctx.tenant_id)
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError("User not found")
            await session.commit()
        logger.info("user_deleted", user_id=user_id, by=ctx.user_id)

    async def delete_own_user(self, ctx: AuthContext) -> None:
        async with AsyncSession(self._engine) as session:
            await session.execute(delete(User).where(col(User.id) == ctx.user_id))
            await session.commit()
        logger.info("user_deleted_self", user_id=ctx.user_id)
