"""First-run bootstrap: the initial tenant and its super admin."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from clubhouse.exceptions import BootstrapError, ClubhouseError
from clubhouse.models.database import AppConfig, RoleAssignment, Tenant, _utc_now
from clubhouse.storage.ids import IdentifierAllocator
from clubhouse.storage.repositories.users import add_user
from clubhouse.types import Role

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from clubhouse.config.settings import Settings

logger = structlog.get_logger(__name__)


async def initial_setup(
    engine: AsyncEngine,
    settings: Settings,
    allocator: IdentifierAllocator | None = None,
) -> bool:
    """Create the initial tenant and super admin unless already done.

    Runs as one transaction together with the ``is_initialized`` flag.
    Returns ``True`` when the bootstrap ran, ``False`` when it was not needed.
    """
    allocator = allocator or IdentifierAllocator()

    async with AsyncSession(engine) as session:
        config = await session.get(AppConfig, 1)
        if config is not None and config.is_initialized:
            return False

        if not (settings.initial_tenant and settings.initial_user and settings.initial_password):
            msg = "INITIAL_TENANT, INITIAL_USER and INITIAL_PASSWORD must be set for first run"
            raise BootstrapError(msg)

        try:
            tenant_id = await allocator.allocate(session, Tenant, title=settings.initial_tenant)
            user_id = await add_user(
                session,
                username=settings.initial_user,
                password=settings.initial_password,
                tenant_id=tenant_id,
            )
            session.add(RoleAssignment(user_id=user_id, role=Role.SUPER_ADMIN.value))
            config = config or AppConfig(id=1)
            config.is_initialized = True
            config.initialized_at = _utc_now()
            session.add(config)
            await session.commit()
        except (SQLAlchemyError, ClubhouseError) as exc:
            logger.exception("bootstrap_failed")
            raise BootstrapError("Failed to initialize application") from exc

    logger.info("bootstrap_completed", tenant_id=tenant_id, user_id=user_id)
    return True
