"""Authenticated identity carried through each request."""

from __future__ import annotations

from dataclasses import dataclass, field

from clubhouse.types import Role


@dataclass(frozen=True, slots=True)
class AuthContext:
    """Immutable per-request identity, built once by the authentication gate.

    Never persisted; every request re-reads sessions and role assignments.
    """

    user_id: str
    session_id: str
    tenant_id: str
    roles: frozenset[Role] = field(default_factory=frozenset)
