# clients/services/info_services.py

from accounts.serializers import UserSerializer
from services.matching import find_available_drivers
from services.trip_management import list_client_trips, count_user_trips
from trips.models import Trip
from trips.serializers import TripSerializer, parse_status_filter

HISTORY_STATUSES = [Trip.COMPLETED, Trip.CANCELLED]


def get_client_profile(user, request=None):
    """Return serialized client profile data with trip counters."""
    data = UserSerializer(user, context={"request": request}).data
    data["total_trips"] = count_user_trips(user)
    data["active_trips"] = count_user_trips(user, [Trip.WAITING_APPROVAL, *Trip.ACTIVE_STATUSES])
    return data


def update_client_profile(user, data, request=None):
    """Update client profile with partial data."""
    ser = UserSerializer(user, data=data, partial=True, context={"request": request})
    ser.is_valid(raise_exception=True)
    ser.save()
    return ser.data


def search_available_drivers(query, request=None):
    """Run the matcher for a validated query and render the candidates."""
    from ..serializers import DriverCandidateSerializer

    candidates = find_available_drivers(
        latitude=query["latitude"],
        longitude=query["longitude"],
        max_distance_km=query.get("max_distance_km"),
        category=query.get("category"),
        min_capacity=query.get("min_capacity"),
    )
    return DriverCandidateSerializer(candidates, many=True, context={"request": request}).data


def get_client_trip_history(user, raw_status=None, limit=20, request=None):
    """
    Past trips for the client. `raw_status` takes canonical or UI names,
    comma separated; finished trips (completed + cancelled) by default.
    """
    status = parse_status_filter(raw_status) or HISTORY_STATUSES
    trips = list_client_trips(user, status=status, limit=limit)
    return TripSerializer(trips, many=True, context={"request": request}).data
