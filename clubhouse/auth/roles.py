"""Role hierarchy and the role authorization check."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog

from clubhouse.exceptions import ForbiddenError
from clubhouse.types import Role

if TYPE_CHECKING:
    from clubhouse.auth.context import AuthContext

logger = structlog.get_logger(__name__)

# role -> every role it may act as (itself included)
ROLE_HIERARCHY: dict[Role, frozenset[Role]] = {
    Role.SUPER_ADMIN: frozenset({Role.SUPER_ADMIN, Role.TENANT_ADMIN, Role.COACH, Role.PLAYER}),
    Role.TENANT_ADMIN: frozenset({Role.TENANT_ADMIN, Role.COACH, Role.PLAYER}),
    Role.COACH: frozenset({Role.COACH, Role.PLAYER}),
    Role.PLAYER: frozenset({Role.PLAYER}),
}

_RANK = {role: index for index, role in enumerate(ROLE_HIERARCHY)}


def at_least(role: Role) -> frozenset[Role]:
    """Return the whitelist of every role that may act as ``role``."""
    return frozenset(held for held, acts_as in ROLE_HIERARCHY.items() if role in acts_as)


def format_roles(roles: Iterable[Role]) -> str:
    """Render roles most-privileged first, e.g. ``[super_admin, coach]``."""
    ordered = sorted(roles, key=_RANK.__getitem__)
    return "[" + ", ".join(role.value for role in ordered) + "]"


def has_any_role(ctx: AuthContext, whitelist: Iterable[Role]) -> bool:
    return not ctx.roles.isdisjoint(whitelist)


def check_roles(ctx: AuthContext, whitelist: Iterable[Role]) -> None:
    """Raise ``ForbiddenError`` unless the caller holds a whitelisted role.

    Plain set intersection: a whitelist must already contain every superior
    role it accepts (build it with :func:`at_least`).
    """
    accepted = frozenset(whitelist)
    if has_any_role(ctx, accepted):
        return
    detail = f"Access denied. Needs one of roles: {format_roles(accepted)}"
    logger.info(
        "role_check_failed",
        user_id=ctx.user_id,
        held=sorted(ctx.roles),
        accepted=sorted(accepted),
    )
    raise ForbiddenError(detail)
