"""Error taxonomy for the seat claim lifecycle.

Every error carries the HTTP status it maps to at the request boundary.
"""

from fastapi import status


class ClaimError(Exception):
    """Base class for recoverable claim errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class NotFoundError(ClaimError):
    """Entity is absent."""

    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(ClaimError):
    """Caller is not the owner or lacks the required role."""

    status_code = status.HTTP_403_FORBIDDEN


class InvalidStateError(ClaimError):
    """Operation is not legal in the current status."""

    pass


class ConflictError(ClaimError):
    """Seat exclusivity would be violated."""

    status_code = status.HTTP_409_CONFLICT


class ExpiredError(ClaimError):
    """Reservation window has passed."""

    pass


class AlreadyUsedError(ClaimError):
    """Ticket has already been checked in."""

    pass


class ValidationFailedError(ClaimError):
    """Malformed input; carries per-field errors."""

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []
