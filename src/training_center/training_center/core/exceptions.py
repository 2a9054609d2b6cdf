from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400
    error = "Request failed"

    def __init__(self, message: str, *, data: dict | None = None):
        super().__init__(message)
        self.message = message
        self.data = data


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400
    error = "Invalid parameters"


class AuthenticationError(DomainError):
    """Raised when credentials or access tokens are invalid."""

    status_code = 401
    error = "Unauthorized"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403
    error = "Forbidden"


class NotFoundError(DomainError):
    status_code = 404
    error = "Not found"


class TooManyAttemptsError(DomainError):
    """Raised when a login is throttled after repeated failures."""

    status_code = 429
    error = "Too many attempts"


class InsufficientHoursError(ValidationError):
    error = "Insufficient hours"

    def __init__(self, message: str, *, remaining_hours: int, requested_hours: float):
        super().__init__(
            message,
            data={"remaining_hours": remaining_hours, "requested_hours": requested_hours},
        )
        self.remaining_hours = remaining_hours
        self.requested_hours = requested_hours
