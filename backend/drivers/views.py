from datetime import datetime

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.utils.dateparse import parse_datetime

from accounts.permissions import IsPartner
from common.exceptions import DomainValidationError
from common.utils import parse_limit
from drivers.serializers import (
    DriverProfileSerializer,
    PartnerProfileUpdateSerializer,
    DriverStatusSerializer,
    LocationUpdateSerializer,
)
from services import trip_management
from trips.serializers import TripSerializer, parse_status_filter
from vehicles.serializers import VehicleSerializer
from vehicles.services import list_owner_vehicles
from accounts.services import update_partner_profile

from drivers import services


def _parse_date_param(request, name):
    raw = request.query_params.get(name)
    if not raw:
        return None
    value = parse_datetime(raw)
    if value is None:
        try:
            value = datetime.fromisoformat(raw)
        except ValueError:
            raise DomainValidationError(f"Invalid '{name}' date: {raw}")
    return value


class DriverProfileView(APIView):
    permission_classes = [IsAuthenticated, IsPartner]

    def get(self, request):
        profile = services.get_driver_profile(request.user)

        return Response({
            "profile": DriverProfileSerializer(profile, context={"request": request}).data,
            "vehicles": VehicleSerializer(
                list_owner_vehicles(request.user.id), many=True, context={"request": request}
            ).data,
        })

    def post(self, request):
        serializer = PartnerProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        update_partner_profile(request.user, **serializer.validated_data)
        profile = services.get_driver_profile(request.user)

        serializer = DriverProfileSerializer(profile, context={"request": request})
        return Response(serializer.data, status=200)


#    NOTE: WS can replace this in future, but HTTP fallback remains.
class DriverStatusView(APIView):
    permission_classes = [IsAuthenticated, IsPartner]

    def get(self, request):
        profile = services.get_driver_profile(request.user)
        return Response({"status": profile.status})

    def put(self, request):
        profile = services.get_driver_profile(request.user)

        serializer = DriverStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data["status"]

        services.update_driver_status(profile, new_status)

        return Response({
            "message": f"Status updated to {new_status}",
            "status": new_status
        })


class DriverLocationUpdateView(APIView):
    permission_classes = [IsAuthenticated, IsPartner]

    def get(self, request):
        profile = services.get_driver_profile(request.user)

        return Response({
            "latitude": float(profile.current_latitude) if profile.has_location else None,
            "longitude": float(profile.current_longitude) if profile.has_location else None,
            "last_updated": profile.last_location_update,
            "status": profile.status,
        })

    def post(self, request):
        profile = services.get_driver_profile(request.user)

        serializer = LocationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        lat = serializer.validated_data["latitude"]
        lon = serializer.validated_data["longitude"]

        services.update_driver_location(profile, lat, lon)

        return Response({
            "message": "Location updated",
            "latitude": float(lat),
            "longitude": float(lon),
            "status": profile.status
        })


class DriverTripRequestsView(APIView):
    """Open trip requests this partner can take, oldest first."""
    permission_classes = [IsAuthenticated, IsPartner]

    def get(self, request):
        if not request.user.is_verified:
            return Response({
                "trips": [],
                "count": 0,
                "message": "Your account is pending verification."
            })

        limit = parse_limit(request, default=10)
        trips = trip_management.list_open_trip_requests(request.user, limit=limit)
        serialized = TripSerializer(trips, many=True, context={"request": request})

        return Response({"trips": serialized.data, "count": len(serialized.data)})


class DriverCurrentTripView(APIView):
    permission_classes = [IsAuthenticated, IsPartner]

    def get(self, request):
        trip = trip_management.get_current_partner_trip(request.user)
        if not trip:
            return Response({"has_active_trip": False, "message": "No active trip"})

        serializer = TripSerializer(trip, context={"request": request})
        return Response({"has_active_trip": True, "trip": serializer.data})


class DriverUpcomingTripsView(APIView):
    permission_classes = [IsAuthenticated, IsPartner]

    def get(self, request):
        trips = trip_management.list_upcoming_partner_trips(request.user)
        serializer = TripSerializer(trips, many=True, context={"request": request})
        return Response({"count": len(trips), "trips": serializer.data})


class DriverTripHistoryView(APIView):
    """
    GET ?status=completed,cancelled&start=2024-01-01&end=2024-02-01
    """
    permission_classes = [IsAuthenticated, IsPartner]

    def get(self, request):
        status = parse_status_filter(request.query_params.get("status"))
        trips = trip_management.list_partner_trips(
            request.user,
            status=status,
            limit=parse_limit(request, default=100),
            start=_parse_date_param(request, "start"),
            end=_parse_date_param(request, "end"),
        )
        serializer = TripSerializer(trips, many=True, context={"request": request})

        return Response({"count": len(trips), "trips": serializer.data})


class DriverEarningsView(APIView):
    permission_classes = [IsAuthenticated, IsPartner]

    def get(self, request):
        user = request.user
        return Response({
            "total_earnings": str(trip_management.get_total_earnings(user)),
            "completed_trips": trip_management.count_user_trips(user, "completed"),
            "rating": user.rating,
            "reviews": trip_management.get_user_review_stats(user.id),
        })
