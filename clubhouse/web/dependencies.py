"""Repository wiring and FastAPI dependency accessors.

Repositories are built once per application around the engine the factory
created, and handed to routes through ``app.state``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from fastapi import Request

from clubhouse.storage.ids import IdentifierAllocator
from clubhouse.storage.repositories.games import GameRepository
from clubhouse.storage.repositories.invites import GameInviteRepository
from clubhouse.storage.repositories.roles import RoleRepository
from clubhouse.storage.repositories.sessions import SessionRepository
from clubhouse.storage.repositories.teams import TeamRepository
from clubhouse.storage.repositories.tenant_invites import TenantInviteRepository
from clubhouse.storage.repositories.tenants import TenantRepository
from clubhouse.storage.repositories.users import UserRepository

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from clubhouse.config.settings import Settings


@dataclass(frozen=True, slots=True)
class Repositories:
    sessions: SessionRepository
    tenants: TenantRepository
    users: UserRepository
    roles: RoleRepository
    teams: TeamRepository
    games: GameRepository
    game_invites: GameInviteRepository
    tenant_invites: TenantInviteRepository


def build_repositories(
    engine: AsyncEngine,
    settings: Settings,
    allocator: IdentifierAllocator | None = None,
) -> Repositories:
    """Create every repository around one shared engine."""
    sessions = SessionRepository(engine, ttl=timedelta(days=settings.session_ttl_days))
    return Repositories(
        sessions=sessions,
        tenants=TenantRepository(engine, sessions, allocator=allocator),
        users=UserRepository(engine),
        roles=RoleRepository(engine),
        teams=TeamRepository(engine),
        games=GameRepository(engine),
        game_invites=GameInviteRepository(engine),
        tenant_invites=TenantInviteRepository(engine),
    )


def get_repos(request: Request) -> Repositories:
    return request.app.state.repos  # type: ignore[no-any-return]
