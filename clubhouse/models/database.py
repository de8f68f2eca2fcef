"""SQLModel database table models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Column, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from clubhouse.types import InviteResponse


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _as_aware_utc(value: datetime) -> datetime:
    """Normalize to aware UTC; naive values (SQLite reads them back that way) are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _timestamp(**kwargs: Any) -> Any:
    """A TIMESTAMP WITH TIME ZONE field holding aware UTC values."""
    return Field(sa_type=DateTime(timezone=True), **kwargs)


def _new_uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Tenancy and identity
# ---------------------------------------------------------------------------


class Tenant(SQLModel, table=True):
    __tablename__ = "tenants"

    # Short random id issued by IdentifierAllocator
    id: str = Field(primary_key=True, max_length=32)
    title: str
    created_at: datetime = _timestamp(default_factory=_utc_now)
    updated_at: datetime = _timestamp(default_factory=_utc_now)


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    username: str = Field(unique=True, index=True)
    password_hash: str
    tenant_id: str = Field(foreign_key="tenants.id", index=True, ondelete="CASCADE")
    created_at: datetime = _timestamp(default_factory=_utc_now)
    updated_at: datetime = _timestamp(default_factory=_utc_now)


class RoleAssignment(SQLModel, table=True):
    __tablename__ = "role_assignments"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_role_assignments_user_role"),)

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    role: str  # super_admin | tenant_admin | coach | player
    created_at: datetime = _timestamp(default_factory=_utc_now)


class Session(SQLModel, table=True):
    __tablename__ = "sessions"

    id: str = Field(primary_key=True, max_length=64)
    user_id: str = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    created_at: datetime = _timestamp(default_factory=_utc_now)
    expires_at: datetime = _timestamp()


class TenantInvite(SQLModel, table=True):
    __tablename__ = "tenant_invites"

    id: str = Field(primary_key=True, max_length=64)
    tenant_id: str = Field(foreign_key="tenants.id", index=True, ondelete="CASCADE")
    created_at: datetime = _timestamp(default_factory=_utc_now)


# ---------------------------------------------------------------------------
# Teams and scheduling
# ---------------------------------------------------------------------------


class Team(SQLModel, table=True):
    __tablename__ = "teams"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    tenant_id: str = Field(foreign_key="tenants.id", index=True, ondelete="CASCADE")
    name: str
    slug: str
    created_at: datetime = _timestamp(default_factory=_utc_now)
    updated_at: datetime = _timestamp(default_factory=_utc_now)


class ScheduleEvent(SQLModel, table=True):
    __tablename__ = "schedule_events"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    start_time: datetime = _timestamp()
    stop_time: datetime | None = _timestamp(default=None)


class Game(SQLModel, table=True):
    __tablename__ = "games"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    team_id: str = Field(foreign_key="teams.id", index=True, ondelete="CASCADE")
    opponent: str
    location: str
    location_kind: str  # home | away | other
    event_id: str = Field(foreign_key="schedule_events.id", unique=True)
    invited_roles: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = _timestamp(default_factory=_utc_now)


class GameInvite(SQLModel, table=True):
    __tablename__ = "game_invites"
    __table_args__ = (UniqueConstraint("user_id", "game_id", name="uq_game_invites_user_game"),)

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    game_id: str = Field(foreign_key="games.id", index=True, ondelete="CASCADE")
    response: str = Field(default=InviteResponse.PENDING.value)
    updated_at: datetime = _timestamp(default_factory=_utc_now)


# ---------------------------------------------------------------------------
# Persistent application config
# ---------------------------------------------------------------------------


class AppConfig(SQLModel, table=True):
    __tablename__ = "app_config"

    id: int = Field(default=1, primary_key=True)
    is_initialized: bool = Field(default=False)
    initialized_at: datetime | None = _timestamp(default=None)
