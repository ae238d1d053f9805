"""
Domain exceptions.

All errors raised by the model layer subclass ReservationAppError, itself a
ValueError, so routes can keep catching ValueError for user-facing messages.
Each class carries the HTTP status used when the error reaches an API route.
"""


class ReservationAppError(ValueError):
    """Base class for user-facing domain errors."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AuthError(ReservationAppError):
    """No authenticated session."""

    status_code = 401


class PermissionDeniedError(ReservationAppError):
    """Authenticated, but the role or commission scope forbids the action."""

    status_code = 403


class NotFoundError(ReservationAppError):
    """Referenced entity does not exist."""

    status_code = 404


class ValidationError(ReservationAppError):
    """Malformed input."""

    status_code = 400


class InvalidStateTransitionError(ValidationError):
    """Reservation status change not allowed by the transition matrix."""


class PolicyError(ReservationAppError):
    """Well-formed input that breaks a business rule (duration cap, commission scope)."""

    status_code = 422


class ConflictError(ReservationAppError):
    """Requested interval overlaps an active reservation on the same location."""

    status_code = 409


class ReferentialIntegrityError(ReservationAppError):
    """Delete blocked by dependent records."""

    status_code = 409
