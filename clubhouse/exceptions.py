"""Exception hierarchy for Clubhouse."""


class ClubhouseError(Exception):
    """Base exception for all Clubhouse errors."""

    status_code = 500
    detail = "Unexpected Error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.detail)
        if detail:
            self.detail = detail


class UnauthorizedError(ClubhouseError):
    """Raised when the caller's identity cannot be resolved."""

    status_code = 401
    detail = "Unauthorized"

    def __init__(self, detail: str | None = None, *, clear_cookie: bool = False) -> None:
        super().__init__(detail)
        self.clear_cookie = clear_cookie


class ForbiddenError(ClubhouseError):
    """Raised when an authenticated caller lacks an accepted role."""

    status_code = 403
    detail = "Forbidden"


class NotFoundError(ClubhouseError):
    """Raised when a resource is absent or belongs to another tenant."""

    status_code = 404
    detail = "Not found"


class ConflictError(ClubhouseError):
    """Raised on a uniqueness violation."""

    status_code = 409
    detail = "Conflict"


class ExhaustedRetriesError(ClubhouseError):
    """Raised when a collision-free identifier could not be allocated."""


class BootstrapError(ClubhouseError):
    """Raised when first-run initialization fails."""
