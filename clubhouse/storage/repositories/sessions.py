"""Session store — opaque bearer tokens mapped to users."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

import structlog
from sqlmodel import col, delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from clubhouse.auth.context import AuthContext
from clubhouse.models.database import RoleAssignment, Session, User, _as_aware_utc, _utc_now
from clubhouse.storage.ids import random_token
from clubhouse.types import Role

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = structlog.get_logger(__name__)

SESSION_TOKEN_LENGTH = 16


class SessionRepository:
    """Database-backed session store.

    Sessions carry a server-side ``expires_at``; an expired row resolves to
    nothing and is removed on sight.
    """

    def __init__(self, engine: AsyncEngine, ttl: timedelta = timedelta(days=7)) -> None:
        self._engine = engine
        self._ttl = ttl

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    async def add(self, session: AsyncSession, user_id: str) -> str:
        """Stage a new session inside the caller's transaction; return its token."""
        token = random_token(SESSION_TOKEN_LENGTH)
        now = _utc_now()
        session.add(Session(id=token, user_id=user_id, created_at=now, expires_at=now + self._ttl))
        await session.flush()
        return token

    async def create(self, user_id: str) -> str:
        """Create a session for ``user_id`` in its own transaction."""
        async with AsyncSession(self._engine) as session:
            token = await self.add(session, user_id)
            await session.commit()
        logger.info("session_created", user_id=user_id)
        return token

    async def resolve(self, token: str) -> AuthContext | None:
        """Return the identity behind ``token`` with its current role set."""
        async with AsyncSession(self._engine) as session:
            stmt = (
                select(
                    col(Session.id).label("session_id"),
                    col(Session.expires_at).label("expires_at"),
                    col(User.id).label("user_id"),
                    col(User.tenant_id).label("tenant_id"),
                    col(RoleAssignment.role).label("role"),
                )
                .join(User, col(User.id) == col(Session.user_id))
                .outerjoin(RoleAssignment, col(RoleAssignment.user_id) == col(User.id))
                .where(col(Session.id) == token)
            )
            result = await session.execute(stmt)
            rows = result.all()
            if not rows:
                return None

            first = rows[0]
            if _as_aware_utc(first.expires_at) <= _utc_now():
                await session.execute(delete(Session).where(col(Session.id) == token))
                await session.commit()
                logger.info("session_expired", user_id=first.user_id)
                return None

            return AuthContext(
                user_id=first.user_id,
                session_id=first.session_id,
                tenant_id=first.tenant_id,
                roles=frozenset(Role(row.role) for row in rows if row.role is not None),
            )

    async def destroy(self, token: str) -> None:
        """Delete a session; deleting an unknown token is not an error."""
        async with AsyncSession(self._engine) as session:
            await session.execute(delete(Session).where(col(Session.id) == token))
            await session.commit()
        logger.info("session_destroyed")
