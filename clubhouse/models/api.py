"""API request/response schemas for FastAPI endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from clubhouse.models.database import _as_aware_utc
from clubhouse.types import AnswerableResponse, InviteResponse, LocationKind, Role

# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class SignUpWithNewTenantRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=72)  # bcrypt input limit
    tenant_title: str = Field(min_length=1, max_length=200)


class SignUpViaInviteRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=72)


# ---------------------------------------------------------------------------
# Users and roles
# ---------------------------------------------------------------------------


class CreateUserRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=72)


class UserResponse(BaseModel):
    id: str
    username: str


class RoleAssignmentRequest(BaseModel):
    user_id: str
    role: Role


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------


class CreateTeamRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    slug: str = Field(min_length=1, max_length=50)


class UpdateTeamRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    slug: str | None = Field(default=None, min_length=1, max_length=50)


class TeamResponse(BaseModel):
    id: str
    tenant_id: str
    name: str
    slug: str


# ---------------------------------------------------------------------------
# Games and invites
# ---------------------------------------------------------------------------


class CreateGameRequest(BaseModel):
    team_id: str
    opponent: str = Field(min_length=1, max_length=200)
    start_time: datetime
    stop_time: datetime | None = None
    location: str = Field(max_length=200)
    location_kind: LocationKind
    invited_roles: list[Role] = Field(default_factory=list)

    @model_validator(mode="after")
    def _stop_after_start(self) -> "CreateGameRequest":
        if self.stop_time is not None and _as_aware_utc(self.stop_time) < _as_aware_utc(
            self.start_time
        ):
            raise ValueError("stop_time must not be before start_time")
        return self


class GameResponse(BaseModel):
    id: str
    team_id: str
    opponent: str
    start_time: datetime
    stop_time: datetime | None
    location: str
    location_kind: LocationKind


class OwnInviteResponse(BaseModel):
    invite_id: str
    game_id: str
    opponent: str
    response: InviteResponse


class GameInviteResponse(BaseModel):
    invite_id: str
    user_id: str
    username: str
    response: InviteResponse


class AnswerInviteRequest(BaseModel):
    invite_id: str
    response: AnswerableResponse
