"""Enums and type aliases for Clubhouse."""

from enum import StrEnum


class Role(StrEnum):
    SUPER_ADMIN = "super_admin"
    TENANT_ADMIN = "tenant_admin"
    COACH = "coach"
    PLAYER = "player"


class LocationKind(StrEnum):
    HOME = "home"
    AWAY = "away"
    OTHER = "other"


class InviteResponse(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    UNSURE = "unsure"


class AnswerableResponse(StrEnum):
    """Responses a recipient may choose; an invite never goes back to pending."""

    ACCEPTED = "accepted"
    DECLINED = "declined"
    UNSURE = "unsure"
