"""
Trip management service - core trip lifecycle operations.

This module handles:
    - Creating trip requests
    - Accepting / refusing trips
    - Advancing trips through pickup to completion
    - Cancelling trips
    - Reviews and in-trip messages
    - Querying trips for clients and partners
"""

from .lifecycle import (
    TripResult,
    get_trip,
    create_trip_request,
    accept_trip,
    refuse_trip,
    compute_estimated_arrival,
    advance_trip,
    cancel_trip,
    set_trip_pricing,
    set_payment_method,
)
from .queries import (
    get_trip_for_participant,
    list_client_trips,
    list_partner_trips,
    list_open_trip_requests,
    get_current_client_trip,
    get_current_partner_trip,
    list_upcoming_partner_trips,
    count_user_trips,
    get_total_earnings,
)
from .reviews import (
    submit_review,
    list_user_reviews,
    list_trip_reviews,
    get_user_review_stats,
)
from .messaging import (
    send_message,
    list_trip_messages,
    mark_messages_read,
    count_unread_messages,
)
from .exceptions import (
    TripNotFoundError,
    TripNotAvailableError,
    InvalidTransitionError,
    NotTripParticipantError,
    DuplicateReviewError,
)

__all__ = [
    # Lifecycle operations
    "TripResult",
    "get_trip",
    "create_trip_request",
    "accept_trip",
    "refuse_trip",
    "compute_estimated_arrival",
    "advance_trip",
    "cancel_trip",
    "set_trip_pricing",
    "set_payment_method",
    # Queries
    "get_trip_for_participant",
    "list_client_trips",
    "list_partner_trips",
    "list_open_trip_requests",
    "get_current_client_trip",
    "get_current_partner_trip",
    "list_upcoming_partner_trips",
    "count_user_trips",
    "get_total_earnings",
    # Reviews
    "submit_review",
    "list_user_reviews",
    "list_trip_reviews",
    "get_user_review_stats",
    # Messages
    "send_message",
    "list_trip_messages",
    "mark_messages_read",
    "count_unread_messages",
    # Exceptions
    "TripNotFoundError",
    "TripNotAvailableError",
    "InvalidTransitionError",
    "NotTripParticipantError",
    "DuplicateReviewError",
]
