"""Custom exceptions for trip management."""

from common.exceptions import (
    NotFoundError,
    InvalidStateError,
    UnauthorizedError,
    DomainValidationError,
)


class TripNotFoundError(NotFoundError):
    """Raised when a trip cannot be found."""
    error_code = "trip_not_found"
    default_message = "Trip not found"


class TripNotAvailableError(InvalidStateError):
    """Raised when another actor already moved the trip (lost race)."""
    error_code = "trip_not_available"
    default_message = "This trip is no longer available"


class InvalidTransitionError(InvalidStateError):
    """Raised when the requested status is not the next step from the current one."""
    error_code = "invalid_transition"
    default_message = "This status change is not allowed"


class NotTripParticipantError(UnauthorizedError):
    """Raised when the actor is neither the trip's client nor its assigned partner."""
    error_code = "not_trip_participant"
    default_message = "You are not a participant of this trip"


class DuplicateReviewError(DomainValidationError):
    """Raised when the reviewer already reviewed this trip."""
    error_code = "duplicate_review"
    default_message = "You have already reviewed this trip"
