from rest_framework import serializers

from accounts.serializers import UserBasicSerializer
from common.exceptions import DomainValidationError
from .models import Trip, Review, Message

# UI filter vocabulary -> canonical status
UI_STATUS_MAP = {
    "searching": Trip.WAITING_APPROVAL,
    "driverMatched": Trip.ACCEPTED,
    "driverApproaching": Trip.DRIVER_ON_THE_WAY,
    "driverArrived": Trip.ARRIVED_AT_PICKUP,
    "inProgress": Trip.IN_PROGRESS,
    "completed": Trip.COMPLETED,
    "cancelled": Trip.CANCELLED,
}

# Mobile app mutation vocabulary -> canonical status
CAMEL_STATUS_MAP = {
    "waitingApproval": Trip.WAITING_APPROVAL,
    "accepted": Trip.ACCEPTED,
    "driverOnTheWay": Trip.DRIVER_ON_THE_WAY,
    "arrivedAtPickup": Trip.ARRIVED_AT_PICKUP,
    "inProgress": Trip.IN_PROGRESS,
    "completed": Trip.COMPLETED,
    "cancelled": Trip.CANCELLED,
}

UI_STATUS_BY_CANONICAL = {canonical: ui for ui, canonical in UI_STATUS_MAP.items()}
CANONICAL_STATUSES = {value for value, _ in Trip.STATUS_CHOICES}


def to_canonical_status(value: str) -> str:
    """Accept canonical, UI-filter or camelCase status names."""
    if value in CANONICAL_STATUSES:
        return value
    if value in UI_STATUS_MAP:
        return UI_STATUS_MAP[value]
    if value in CAMEL_STATUS_MAP:
        return CAMEL_STATUS_MAP[value]
    raise DomainValidationError(f"Unknown trip status: {value}")


def parse_status_filter(raw):
    """'?status=completed,cancelled' -> ['completed', 'cancelled'] (None when absent)."""
    if not raw:
        return None
    return [to_canonical_status(part.strip()) for part in raw.split(",") if part.strip()]


# ---------------------- Input ----------------------

class LocationSerializer(serializers.Serializer):
    address = serializers.CharField()
    latitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=-90, max_value=90)
    longitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=-180, max_value=180)
    place_name = serializers.CharField(required=False, allow_blank=True)


class TripDetailsSerializer(serializers.Serializer):
    passengers = serializers.IntegerField(min_value=1, default=1)
    luggage = serializers.IntegerField(min_value=0, default=0)
    special_requests = serializers.CharField(required=False, allow_blank=True)


class TimingSerializer(serializers.Serializer):
    is_scheduled = serializers.BooleanField(default=False)
    departure_at = serializers.DateTimeField(required=False, allow_null=True)
    arrival_at = serializers.DateTimeField(required=False, allow_null=True)

    def validate(self, data):
        if data.get("is_scheduled") and not data.get("departure_at"):
            raise serializers.ValidationError({"departure_at": "Required for scheduled trips"})
        return data


class PricingSerializer(serializers.Serializer):
    base_fare = serializers.FloatField(min_value=0)
    distance_fare = serializers.FloatField(min_value=0)
    taxes = serializers.FloatField(min_value=0)
    total = serializers.FloatField(min_value=0)
    currency = serializers.CharField(max_length=8)


class TripCreateSerializer(serializers.Serializer):
    pickup = LocationSerializer()
    dropoff = LocationSerializer()
    trip_details = TripDetailsSerializer(required=False)
    timing = TimingSerializer(required=False)
    estimated_distance = serializers.FloatField(required=False, allow_null=True, min_value=0)
    estimated_duration = serializers.FloatField(required=False, allow_null=True, min_value=0)
    pricing = PricingSerializer(required=False, allow_null=True)


class TripAcceptSerializer(serializers.Serializer):
    """ETA can be given directly, or derived from the partner's distance to pickup."""
    vehicle_id = serializers.IntegerField()
    estimated_arrival_minutes = serializers.FloatField(required=False, min_value=0)
    distance_km = serializers.FloatField(required=False, min_value=0)

    def validate(self, data):
        if data.get("estimated_arrival_minutes") is None and data.get("distance_km") is None:
            raise serializers.ValidationError("Provide estimated_arrival_minutes or distance_km")
        return data


class TripRefuseSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class TripStatusSerializer(serializers.Serializer):
    status = serializers.CharField()

    def validate_status(self, value):
        try:
            return to_canonical_status(value)
        except DomainValidationError as e:
            raise serializers.ValidationError(e.message)


class TripCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class PaymentMethodSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=Trip.PAYMENT_CHOICES)


class EstimateArrivalSerializer(serializers.Serializer):
    distance_km = serializers.FloatField(min_value=0)
    speed_kmh = serializers.FloatField(required=False)


class ReviewCreateSerializer(serializers.Serializer):
    reviewee_id = serializers.IntegerField()
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(required=False, allow_blank=True)


class MessageCreateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=2000)


# ---------------------- Output ----------------------

class TripSerializer(serializers.ModelSerializer):
    """Trip as returned to clients and partners"""
    client = UserBasicSerializer(read_only=True)
    partner = UserBasicSerializer(read_only=True)
    vehicle = serializers.SerializerMethodField()
    pickup = serializers.SerializerMethodField()
    dropoff = serializers.SerializerMethodField()
    trip_details = serializers.SerializerMethodField()
    timing = serializers.SerializerMethodField()
    ui_status = serializers.SerializerMethodField()

    class Meta:
        model = Trip
        fields = [
            "id", "client", "partner", "vehicle", "status", "ui_status",
            "pickup", "dropoff", "trip_details", "timing",
            "estimated_duration", "estimated_distance", "estimated_arrival_minutes",
            "pricing", "payment_method", "cancellation_reason", "cancelled_by",
            "created_at", "updated_at", "accepted_at", "completed_at", "cancelled_at",
        ]

    def get_vehicle(self, obj):
        if obj.vehicle is None:
            return None
        return {
            "id": obj.vehicle.id,
            "model": obj.vehicle.display_name,
            "license_plate": obj.vehicle.license_plate,
            "color": obj.vehicle.color,
            "category": obj.vehicle.category,
            "capacity": obj.vehicle.capacity,
        }

    @staticmethod
    def _location(address, lat, lon, place_name):
        return {
            "address": address,
            "latitude": float(lat),
            "longitude": float(lon),
            "place_name": place_name or None,
        }

    def get_pickup(self, obj):
        return self._location(obj.pickup_address, obj.pickup_latitude, obj.pickup_longitude, obj.pickup_place_name)

    def get_dropoff(self, obj):
        return self._location(obj.dropoff_address, obj.dropoff_latitude, obj.dropoff_longitude, obj.dropoff_place_name)

    def get_trip_details(self, obj):
        return {
            "passengers": obj.passengers,
            "luggage": obj.luggage,
            "special_requests": obj.special_requests or None,
        }

    def get_timing(self, obj):
        return {
            "is_scheduled": obj.is_scheduled,
            "departure_at": obj.departure_at,
            "arrival_at": obj.arrival_at,
        }

    def get_ui_status(self, obj):
        return UI_STATUS_BY_CANONICAL.get(obj.status)


class ReviewSerializer(serializers.ModelSerializer):
    reviewer = UserBasicSerializer(read_only=True)

    class Meta:
        model = Review
        fields = ["id", "trip", "reviewer", "reviewee", "rating", "comment", "created_at"]


class MessageSerializer(serializers.ModelSerializer):
    sender_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Message
        fields = ["id", "trip", "sender_id", "content", "read", "created_at"]
