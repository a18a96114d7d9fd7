"""
Typed, recoverable errors raised by the service layer.

Views never build error responses for these by hand: the DRF exception
handler in common.exception_handler turns them into JSON responses.
"""


class ServiceError(Exception):
    """Base class for service-layer errors surfaced to API callers."""

    error_code = "service_error"
    default_message = "Request could not be processed"

    def __init__(self, message: str = "", error_code: str = None):
        self.message = message or self.default_message
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)


class NotFoundError(ServiceError):
    """Raised when a referenced trip, user, vehicle or document does not exist."""
    error_code = "not_found"
    default_message = "Resource not found"


class InvalidStateError(ServiceError):
    """Raised when an entity is not in the state an operation requires."""
    error_code = "invalid_state"
    default_message = "Operation not allowed in the current state"


class UnauthorizedError(ServiceError):
    """Raised when the actor is not allowed to act on the entity."""
    error_code = "unauthorized"
    default_message = "You are not allowed to perform this action"


class DomainValidationError(ServiceError):
    """Raised for malformed input or uniqueness violations."""
    error_code = "validation_error"
    default_message = "Invalid input"


class UpstreamUnavailableError(ServiceError):
    """Raised when the database or file storage cannot be reached."""
    error_code = "upstream_unavailable"
    default_message = "A backing service is temporarily unavailable"
