import logging

from services import trip_management
from trips.models import Trip
from trips.serializers import TripCreateSerializer, TripCancelSerializer, TripSerializer

logger = logging.getLogger(__name__)

CURRENT_TRIP_MESSAGES = {
    Trip.WAITING_APPROVAL: "Searching for a driver...",
    Trip.ACCEPTED: "A driver accepted your trip.",
    Trip.DRIVER_ON_THE_WAY: "Driver is on the way!",
    Trip.ARRIVED_AT_PICKUP: "Your driver has arrived.",
    Trip.IN_PROGRESS: "Enjoy your trip.",
}


def create_trip(user, data, request=None):
    """
    Validate the request body and create a trip awaiting a partner.
    The client is notified by the lifecycle manager.
    """
    create_ser = TripCreateSerializer(data=data)
    create_ser.is_valid(raise_exception=True)
    payload = create_ser.validated_data

    result = trip_management.create_trip_request(
        client=user,
        pickup=payload["pickup"],
        dropoff=payload["dropoff"],
        trip_details=payload.get("trip_details") or {},
        timing=payload.get("timing") or {},
        estimated_distance=payload.get("estimated_distance"),
        estimated_duration=payload.get("estimated_duration"),
        pricing=dict(payload["pricing"]) if payload.get("pricing") else None,
    )

    return {
        "message": result.message,
        "trip": TripSerializer(result.trip, context={"request": request}).data,
    }


def get_current_trip(user, request=None):
    """Latest open trip for the polling endpoint, or None."""
    trip = trip_management.get_current_client_trip(user)
    if not trip:
        return None

    return {
        "has_active_trip": True,
        "trip": TripSerializer(trip, context={"request": request}).data,
        "status": trip.status,
        "driver_assigned": trip.partner_id is not None,
        "message": CURRENT_TRIP_MESSAGES.get(trip.status, ""),
    }


def cancel_trip(user, trip_id, data, request=None):
    ser = TripCancelSerializer(data=data)
    ser.is_valid(raise_exception=True)

    had_partner = trip_management.get_trip(trip_id).partner_id is not None
    result = trip_management.cancel_trip(trip_id, user, ser.validated_data["reason"])
    logger.info("Client %s cancelled trip %s (had partner: %s)", user.id, trip_id, had_partner)

    return {
        "success": result.success,
        "message": result.message,
        "trip": TripSerializer(result.trip, context={"request": request}).data,
        "was_assigned": had_partner,
    }
