"""Role hierarchy and authorization check."""

from __future__ import annotations

from itertools import combinations

import pytest

from clubhouse.auth.context import AuthContext
from clubhouse.auth.roles import ROLE_HIERARCHY, at_least, check_roles, format_roles
from clubhouse.exceptions import ForbiddenError
from clubhouse.types import Role


def _all_subsets() -> list[frozenset[Role]]:
    roles = list(Role)
    return [frozenset(combo) for n in range(len(roles) + 1) for combo in combinations(roles, n)]


def _ctx(*roles: Role) -> AuthContext:
    return AuthContext(user_id="u1", session_id="s1", tenant_id="t1", roles=frozenset(roles))


@pytest.mark.unit
class TestAtLeast:
    def test_super_admin_is_only_itself(self) -> None:
        assert at_least(Role.SUPER_ADMIN) == {Role.SUPER_ADMIN}

    def test_tenant_admin_includes_super_admin(self) -> None:
        assert at_least(Role.TENANT_ADMIN) == {Role.SUPER_ADMIN, Role.TENANT_ADMIN}

    def test_coach(self) -> None:
        assert at_least(Role.COACH) == {Role.SUPER_ADMIN, Role.TENANT_ADMIN, Role.COACH}

    def test_player_is_everyone(self) -> None:
        assert at_least(Role.PLAYER) == set(Role)

    def test_every_role_acts_as_itself(self) -> None:
        for role, acts_as in ROLE_HIERARCHY.items():
            assert role in acts_as


@pytest.mark.unit
class TestCheckRoles:
    @pytest.mark.parametrize("held", _all_subsets())
    @pytest.mark.parametrize("whitelist", _all_subsets())
    def test_allowed_iff_intersection(
        self, held: frozenset[Role], whitelist: frozenset[Role]
    ) -> None:
        ctx = _ctx(*held)
        if held & whitelist:
            check_roles(ctx, whitelist)
        else:
            with pytest.raises(ForbiddenError):
                check_roles(ctx, whitelist)

    def test_no_roles_is_denied(self) -> None:
        with pytest.raises(ForbiddenError):
            check_roles(_ctx(), at_least(Role.PLAYER))

    def test_denial_names_accepted_roles(self) -> None:
        with pytest.raises(ForbiddenError) as exc_info:
            check_roles(_ctx(Role.PLAYER), at_least(Role.TENANT_ADMIN))
        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == (
            "Access denied. Needs one of roles: [super_admin, tenant_admin]"
        )

    def test_plain_whitelist_is_not_expanded(self) -> None:
        # A whitelist without superiors rejects them
        with pytest.raises(ForbiddenError):
            check_roles(_ctx(Role.SUPER_ADMIN), {Role.COACH})


@pytest.mark.unit
class TestFormatRoles:
    def test_orders_most_privileged_first(self) -> None:
        assert format_roles([Role.PLAYER, Role.SUPER_ADMIN, Role.COACH]) == (
            "[super_admin, coach, player]"
        )

    def test_empty(self) -> None:
        assert format_roles([]) == "[]"
