from rest_framework import serializers

from common import storage
from vehicles.models import Vehicle

PLACEHOLDER_PHOTO = "https://placehold.co/600x400/png"


class AvailableDriversQuerySerializer(serializers.Serializer):
    """
    Validates the pickup point and filters sent by the client.

    Expected body:
    {
        "latitude": <float>,
        "longitude": <float>,
        "max_distance_km": <float>,   // optional
        "category": "premium",        // optional
        "min_capacity": 4             // optional
    }
    """

    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    max_distance_km = serializers.FloatField(required=False, allow_null=True, min_value=0)
    category = serializers.ChoiceField(choices=Vehicle.CATEGORY_CHOICES, required=False, allow_null=True)
    min_capacity = serializers.IntegerField(required=False, allow_null=True, min_value=1)


class DriverCandidateSerializer(serializers.Serializer):
    """Renders a DriverCandidate with URLs and display strings for the app."""

    id = serializers.IntegerField()
    name = serializers.CharField()
    photo = serializers.SerializerMethodField()
    vehicle = serializers.SerializerMethodField()
    rating = serializers.FloatField()
    distance_km = serializers.FloatField()
    distance = serializers.SerializerMethodField()
    eta_minutes = serializers.IntegerField()
    eta = serializers.SerializerMethodField()
    price_range = serializers.DictField(child=serializers.IntegerField())
    status = serializers.CharField()

    def get_photo(self, obj):
        return storage.get_url(obj.photo, self.context.get("request")) or PLACEHOLDER_PHOTO

    def get_vehicle(self, obj):
        vehicle = dict(obj.vehicle)
        vehicle["image"] = storage.get_url(vehicle.get("image"), self.context.get("request"))
        return vehicle

    def get_distance(self, obj):
        return f"{obj.distance_km:.1f} km"

    def get_eta(self, obj):
        return f"{obj.eta_minutes} min"
