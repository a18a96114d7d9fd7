from rest_framework import serializers
from drivers.models import DriverProfile
from accounts.serializers import PartnerSerializer


class DriverProfileSerializer(serializers.ModelSerializer):
    """
    Full driver profile serializer
    """
    user = serializers.SerializerMethodField()

    class Meta:
        model = DriverProfile
        fields = [
            "id",
            "user",
            "status",
            "current_latitude",
            "current_longitude",
            "last_location_update",
        ]
        read_only_fields = ["id", "status", "current_latitude", "current_longitude", "last_location_update"]

    def get_user(self, obj):
        # Nested serializer needs the request for absolute picture URLs
        return PartnerSerializer(obj.user, context={"request": self.context.get("request")}).data


class PartnerProfileUpdateSerializer(serializers.Serializer):
    """Editable partner registration data; changes send the partner back to review."""
    first_name = serializers.CharField(required=False)
    last_name = serializers.CharField(required=False)
    phone_number = serializers.CharField(required=False, allow_blank=True)
    languages = serializers.ListField(child=serializers.CharField(), required=False)
    cin = serializers.CharField(required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    city = serializers.CharField(required=False, allow_blank=True)
    postal_code = serializers.CharField(required=False, allow_blank=True)


class DriverStatusSerializer(serializers.Serializer):
    """
    Serializer for updating driver availability (available/offline).
    'busy' is set by the trip lifecycle only.
    """
    status = serializers.ChoiceField(choices=[DriverProfile.AVAILABLE, DriverProfile.OFFLINE])


class LocationUpdateSerializer(serializers.Serializer):
    """
    Serializer for updating driver GPS location.
    """
    latitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=-90, max_value=90)
    longitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=-180, max_value=180)
