"""
Core trip lifecycle operations.

Every status write is one conditional UPDATE filtered on the status the
operation expects, so two actors racing on the same trip cannot both win:
the loser sees zero updated rows and gets TripNotAvailableError (or
InvalidTransitionError when the trip simply is in another state).

    waiting_approval -> accepted -> driver_on_the_way -> arrived_at_pickup
        -> in_progress -> completed
    any non-terminal status -> cancelled
"""

import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from common.exceptions import DomainValidationError, NotFoundError, InvalidStateError, UnauthorizedError
from common.utils import estimate_arrival_minutes
from drivers.models import DriverProfile
from drivers.services import set_partner_availability
from trips.models import Trip, TripDecline
from vehicles.models import Vehicle
from .exceptions import (
    TripNotFoundError,
    TripNotAvailableError,
    InvalidTransitionError,
    NotTripParticipantError,
)

User = get_user_model()
logger = logging.getLogger(__name__)

# Status a trip must be in for a partner to move it to the key status
PREDECESSOR = {
    Trip.DRIVER_ON_THE_WAY: Trip.ACCEPTED,
    Trip.ARRIVED_AT_PICKUP: Trip.DRIVER_ON_THE_WAY,
    Trip.IN_PROGRESS: Trip.ARRIVED_AT_PICKUP,
    Trip.COMPLETED: Trip.IN_PROGRESS,
}

PROGRESS_NOTIFICATIONS = {
    Trip.DRIVER_ON_THE_WAY: ("Driver On The Way", "Your driver is on the way to the pickup location."),
    Trip.ARRIVED_AT_PICKUP: ("Driver Arrived", "Your driver has arrived at the pickup location."),
    Trip.IN_PROGRESS: ("Trip Started", "Your trip is now in progress."),
    Trip.COMPLETED: ("Trip Completed", "Your trip has been completed. Thank you for riding with us!"),
}

PRICING_KEYS = ("base_fare", "distance_fare", "taxes", "total", "currency")


@dataclass
class TripResult:
    """Result object for trip operations."""
    success: bool
    trip: Optional[Trip] = None
    message: str = ""
    extra: Optional[Dict[str, Any]] = None


# ===================== Helpers =====================

def get_trip(trip_id) -> Trip:
    try:
        return Trip.objects.select_related("client", "partner", "vehicle").get(pk=trip_id)
    except Trip.DoesNotExist:
        raise TripNotFoundError()


def _conditional_update(trip_id, expected_status, extra_filters=None, **fields) -> bool:
    """
    UPDATE trips SET ... WHERE id = trip_id AND status IN expected_status.

    Returns True when exactly this call moved the trip.
    """
    if isinstance(expected_status, str):
        expected_status = [expected_status]
    fields.setdefault("updated_at", timezone.now())
    qs = Trip.objects.filter(pk=trip_id, status__in=expected_status, **(extra_filters or {}))
    return qs.update(**fields) == 1


def _notify(user_id, title: str, message: str, trip_id, type: str = "trip"):
    from notifications.services import create_notification
    create_notification(user_id, type, title, message, related_id=trip_id)


def _require_partner(user, action: str):
    if not getattr(user, "is_partner", False):
        raise UnauthorizedError(f"Only partners can {action}")


def _require_verified_partner(user, action: str):
    _require_partner(user, action)
    if not user.is_verified:
        raise UnauthorizedError(
            f"Your account must be verified to {action}", error_code="partner_not_verified"
        )


# ===================== Client Operations =====================

@transaction.atomic
def create_trip_request(
    client,
    pickup: Dict[str, Any],
    dropoff: Dict[str, Any],
    trip_details: Dict[str, Any],
    timing: Dict[str, Any],
    estimated_distance: Optional[float] = None,
    estimated_duration: Optional[float] = None,
    pricing: Optional[Dict[str, Any]] = None,
) -> TripResult:
    """
    Create a new trip request awaiting a partner.

    Args:
        client: User model instance (client)
        pickup: {"address", "latitude", "longitude", "place_name"?}
        dropoff: same shape as pickup
        trip_details: {"passengers", "luggage", "special_requests"?}
        timing: {"is_scheduled", "departure_at"?, "arrival_at"?}
        estimated_distance: km
        estimated_duration: minutes
        pricing: {"base_fare", "distance_fare", "taxes", "total", "currency"}

    Returns:
        TripResult with the created trip

    Raises:
        UnauthorizedError: actor is not a client
        DomainValidationError: scheduled trip without a departure time
    """
    if client is None or not User.objects.filter(pk=client.pk).exists():
        raise NotFoundError("Client not found", error_code="user_not_found")
    if not client.is_client:
        raise UnauthorizedError("Only clients can request trips")

    is_scheduled = bool(timing.get("is_scheduled"))
    if is_scheduled and not timing.get("departure_at"):
        raise DomainValidationError("Scheduled trips need a departure time")
    if pricing is not None:
        _validate_pricing(pricing)

    now = timezone.now()
    trip = Trip.objects.create(
        client=client,
        status=Trip.WAITING_APPROVAL,
        pickup_address=pickup["address"],
        pickup_latitude=pickup["latitude"],
        pickup_longitude=pickup["longitude"],
        pickup_place_name=pickup.get("place_name") or "",
        dropoff_address=dropoff["address"],
        dropoff_latitude=dropoff["latitude"],
        dropoff_longitude=dropoff["longitude"],
        dropoff_place_name=dropoff.get("place_name") or "",
        passengers=trip_details.get("passengers", 1),
        luggage=trip_details.get("luggage", 0),
        special_requests=trip_details.get("special_requests") or "",
        is_scheduled=is_scheduled,
        departure_at=timing.get("departure_at"),
        arrival_at=timing.get("arrival_at"),
        estimated_distance=estimated_distance,
        estimated_duration=estimated_duration,
        pricing=pricing,
        created_at=now,
        updated_at=now,
    )

    _notify(
        client.id,
        "Trip Request Created",
        "Your scheduled trip request has been created and we're finding a driver for you."
        if is_scheduled
        else "Your trip request has been created and we're finding a driver for you.",
        trip.id,
    )
    logger.info("Client %s created trip %s (scheduled=%s)", client.id, trip.id, is_scheduled)

    return TripResult(success=True, trip=trip, message="Trip request created")


# ===================== Partner Operations =====================

@transaction.atomic
def accept_trip(trip_id, partner, vehicle_id, estimated_arrival_minutes) -> TripResult:
    """
    Accept a waiting trip with one of the partner's active vehicles.

    Raises:
        TripNotFoundError: unknown trip
        UnauthorizedError: not a verified partner, or the vehicle belongs to someone else
        InvalidStateError: vehicle not active
        TripNotAvailableError: trip already taken/cancelled, or declined by this partner
    """
    _require_verified_partner(partner, "accept trips")
    trip = get_trip(trip_id)

    vehicle = Vehicle.objects.select_for_update().filter(pk=vehicle_id).first()
    if vehicle is None:
        raise NotFoundError("Vehicle not found", error_code="vehicle_not_found")
    if vehicle.owner_id != partner.pk:
        raise UnauthorizedError("This vehicle does not belong to you")
    if vehicle.status != Vehicle.ACTIVE:
        raise InvalidStateError("Vehicle is not active", error_code="vehicle_not_active")
    if vehicle.capacity < trip.passengers:
        raise DomainValidationError("Vehicle capacity is below the number of passengers")

    if estimated_arrival_minutes is None or float(estimated_arrival_minutes) < 0:
        raise DomainValidationError("Estimated arrival must be a non-negative number of minutes")

    if TripDecline.objects.filter(trip_id=trip.pk, partner=partner).exists():
        raise TripNotAvailableError("You declined this trip")

    now = timezone.now()
    won = _conditional_update(
        trip.pk,
        Trip.WAITING_APPROVAL,
        extra_filters={"partner__isnull": True},
        status=Trip.ACCEPTED,
        partner=partner,
        vehicle=vehicle,
        estimated_arrival_minutes=estimated_arrival_minutes,
        accepted_at=now,
        updated_at=now,
    )
    if not won:
        logger.warning("Partner %s lost acceptance of trip %s (status=%s)", partner.id, trip.pk, trip.status)
        raise TripNotAvailableError()

    set_partner_availability(partner.id, DriverProfile.BUSY)

    _notify(
        trip.client_id,
        "Trip Accepted",
        f"Your trip has been accepted by {partner.full_name or partner.username}. "
        f"Estimated arrival: {estimated_arrival_minutes} minutes.",
        trip.pk,
    )
    logger.info("Trip %s accepted by partner %s with vehicle %s", trip.pk, partner.id, vehicle.id)

    trip.refresh_from_db()
    return TripResult(
        success=True,
        trip=trip,
        message="Trip accepted. Navigate to the pickup location.",
    )


@transaction.atomic
def refuse_trip(trip_id, partner, refusal_reason: str = "") -> TripResult:
    """
    Decline a waiting trip. The trip stays open for other partners but is no
    longer offered to (or acceptable by) this one.
    """
    _require_partner(partner, "refuse trips")
    trip = get_trip(trip_id)

    if trip.status != Trip.WAITING_APPROVAL:
        raise TripNotAvailableError()

    _, created = TripDecline.objects.get_or_create(
        trip=trip,
        partner=partner,
        defaults={"reason": refusal_reason or ""},
    )
    if created:
        logger.info("Partner %s declined trip %s: %s", partner.id, trip.pk, refusal_reason)

    return TripResult(
        success=True,
        trip=trip,
        message="Trip refused",
        extra={"already_declined": not created},
    )


def compute_estimated_arrival(distance_km: float, speed_kmh: Optional[float] = None) -> float:
    """Minutes to cover distance_km; defaults to DEFAULT_DRIVER_SPEED_KMH."""
    if speed_kmh is None:
        speed_kmh = settings.DEFAULT_DRIVER_SPEED_KMH
    return estimate_arrival_minutes(distance_km, speed_kmh)


@transaction.atomic
def advance_trip(trip_id, partner, new_status: str) -> TripResult:
    """
    Move an assigned trip one step forward.

    Only the assigned partner may advance, and only from the exact
    predecessor of new_status.
    """
    if new_status not in PREDECESSOR:
        raise InvalidTransitionError(f"Cannot advance a trip to '{new_status}'")

    trip = get_trip(trip_id)
    if trip.partner_id != partner.pk:
        raise NotTripParticipantError("Only the assigned partner can update this trip")

    expected = PREDECESSOR[new_status]
    now = timezone.now()
    fields = {"status": new_status, "updated_at": now}
    if new_status == Trip.COMPLETED:
        fields["completed_at"] = now

    if not _conditional_update(trip.pk, expected, extra_filters={"partner": partner}, **fields):
        current = Trip.objects.filter(pk=trip.pk).values_list("status", flat=True).first()
        logger.warning(
            "Rejected transition of trip %s to %s (current=%s, expected=%s)",
            trip.pk, new_status, current, expected,
        )
        if current == Trip.CANCELLED:
            raise TripNotAvailableError()
        raise InvalidTransitionError(f"Cannot move trip from '{current}' to '{new_status}'")

    if new_status == Trip.COMPLETED:
        User.objects.filter(pk__in=[trip.client_id, trip.partner_id]).update(
            completed_trips=F("completed_trips") + 1
        )
        set_partner_availability(partner.id, DriverProfile.AVAILABLE)

    title, message = PROGRESS_NOTIFICATIONS[new_status]
    _notify(trip.client_id, title, message, trip.pk)
    logger.info("Trip %s: %s -> %s", trip.pk, expected, new_status)

    trip.refresh_from_db()
    return TripResult(success=True, trip=trip, message=f"Trip status updated to {new_status}")


# ===================== Shared Operations =====================

@transaction.atomic
def cancel_trip(trip_id, actor, reason: str = "") -> TripResult:
    """
    Cancel a non-terminal trip as its client or its assigned partner.

    Both parties are notified; an assigned partner becomes available again.
    """
    trip = get_trip(trip_id)

    if actor.pk == trip.client_id:
        cancelled_by, scope = "client", {"client": actor}
    elif trip.partner_id is not None and actor.pk == trip.partner_id:
        cancelled_by, scope = "partner", {"partner": actor}
    else:
        raise NotTripParticipantError()

    if trip.is_terminal:
        raise InvalidStateError(f"Cannot cancel a {trip.status} trip", error_code="trip_not_cancellable")

    non_terminal = [s for s in Trip.PROGRESSION if s not in Trip.TERMINAL_STATUSES]
    now = timezone.now()
    won = _conditional_update(
        trip.pk,
        non_terminal,
        extra_filters=scope,
        status=Trip.CANCELLED,
        cancellation_reason=reason or "",
        cancelled_by=cancelled_by,
        cancelled_at=now,
        updated_at=now,
    )
    if not won:
        logger.warning("Cancel of trip %s by %s lost a race", trip.pk, cancelled_by)
        raise TripNotAvailableError()

    # Re-read: a partner may have accepted between get_trip() and the update
    trip.refresh_from_db()
    if trip.partner_id:
        set_partner_availability(trip.partner_id, DriverProfile.AVAILABLE)

    by_client = cancelled_by == "client"
    _notify(
        trip.client_id,
        "Trip Cancelled" if by_client else "Trip Cancelled by Driver",
        "You have cancelled your trip."
        if by_client
        else f"Your trip has been cancelled by the driver. Reason: {reason}",
        trip.pk,
    )
    if trip.partner_id:
        _notify(
            trip.partner_id,
            "Trip Cancelled by Client" if by_client else "Trip Cancelled",
            f"The client has cancelled their trip. Reason: {reason}"
            if by_client
            else "You have cancelled this trip.",
            trip.pk,
        )
    logger.info("Trip %s cancelled by %s %s", trip.pk, cancelled_by, actor.id)

    return TripResult(
        success=True,
        trip=trip,
        message="Trip cancelled successfully",
        extra={"was_assigned": trip.partner_id is not None},
    )


def _validate_pricing(pricing: Dict[str, Any]):
    missing = [key for key in PRICING_KEYS if key not in pricing]
    if missing:
        raise DomainValidationError(f"Pricing is missing: {', '.join(missing)}")
    for key in PRICING_KEYS[:-1]:
        if float(pricing[key]) < 0:
            raise DomainValidationError(f"Pricing {key} cannot be negative")


@transaction.atomic
def set_trip_pricing(trip_id, actor, pricing: Dict[str, Any]) -> TripResult:
    trip = get_trip(trip_id)
    if not trip.is_participant(actor) and not actor.is_staff:
        raise NotTripParticipantError()
    if trip.status == Trip.CANCELLED:
        raise InvalidStateError("Cannot price a cancelled trip")
    _validate_pricing(pricing)

    pricing = {key: pricing[key] for key in PRICING_KEYS}
    Trip.objects.filter(pk=trip.pk).update(pricing=pricing, updated_at=timezone.now())
    trip.refresh_from_db()
    return TripResult(success=True, trip=trip, message="Pricing updated")


@transaction.atomic
def set_payment_method(trip_id, client, method: str) -> TripResult:
    """Record the client's chosen payment method; no payment is taken."""
    if method not in dict(Trip.PAYMENT_CHOICES):
        raise DomainValidationError(f"Unknown payment method: {method}")

    trip = get_trip(trip_id)
    if trip.client_id != client.pk:
        raise NotTripParticipantError("Only the client can choose the payment method")
    if trip.status == Trip.CANCELLED:
        raise InvalidStateError("Cannot update payment for a cancelled trip")

    Trip.objects.filter(pk=trip.pk).update(payment_method=method, updated_at=timezone.now())
    _notify(
        client.id,
        "Payment Method Updated",
        f"Your payment method has been updated to {method}.",
        trip.pk,
        type="payment",
    )
    trip.refresh_from_db()
    return TripResult(success=True, trip=trip, message="Payment method updated")
