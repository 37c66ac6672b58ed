"""
Custom exception classes for the fleet rental service.

Every error the service layer raises derives from ``AppError`` so the
application-level error handler can turn it into the uniform JSON envelope
instead of a generic 500 response.
"""
from typing import Optional


class AppError(Exception):
    """Base class for domain errors. Carries the HTTP status to answer with."""

    status_code = 500
    default_message = "Error: internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[list] = None) -> None:
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class ValidationError(AppError):
    """Raised when request input is malformed. ``errors`` lists field-level problems."""

    status_code = 400
    default_message = "Validation failed"


class InvalidDateRange(AppError):
    """Raised when an end date is not after its start date."""

    status_code = 400
    default_message = "End date must be after start date"


class ConflictError(AppError):
    """Raised when an approved rental already occupies the requested period."""

    status_code = 400
    default_message = "Car is already rented for this period"


class DuplicateKey(AppError):
    """Raised when a unique field (licence plate, email, username) is taken."""

    status_code = 400
    default_message = "Duplicate field value"


class Forbidden(AppError):
    """Raised on ownership, role or status-transition violations."""

    status_code = 403
    default_message = "Forbidden"


class NotFound(AppError):
    """Raised when an entity id cannot be resolved."""

    status_code = 404
    default_message = "Not found"


class InvalidCredential(AppError):
    """Raised when a bearer token or a login is rejected."""

    status_code = 401
    default_message = "Invalid or expired token"


class InternalError(AppError):
    status_code = 500
