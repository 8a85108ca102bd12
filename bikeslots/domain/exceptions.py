"""
Domain-specific exception hierarchy for the booking scheduler.

Callers branch on the family: ``ValidationError`` means "fix your request",
``ConflictError`` means "try another slot", ``InternalError`` means
"try again later".
"""


class BookingError(Exception):
    """Base class for all application-level errors."""


class ValidationError(BookingError):
    """Raised when a request is missing fields or is malformed."""


class InvalidRequest(ValidationError):
    """Raised when a booking request cannot be admitted as submitted."""


class NotFoundError(BookingError):
    """Raised when a referenced entity does not exist."""


class ServiceNotFound(NotFoundError):
    """Raised when a service is unknown or inactive."""


class BikeNotFound(NotFoundError):
    """Raised when a bike id does not resolve."""


class BookingNotFound(NotFoundError):
    """Raised when a booking id does not resolve."""


class ConflictError(BookingError):
    """Raised when a write collides with existing state."""


class SlotUnavailable(ConflictError):
    """Raised when the requested window overlaps an existing booking."""


class DuplicateNumberPlate(ConflictError):
    """Raised when a bike with the same number plate is already registered."""


class AuthorizationError(BookingError):
    """Raised on role or ownership mismatch."""


class InternalError(BookingError):
    """Raised when a collaborator fails for reasons the caller cannot fix."""


class RepositoryError(InternalError):
    """Raised when the storage backend fails."""
