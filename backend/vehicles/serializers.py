from rest_framework import serializers

from common import storage
from vehicles.models import Vehicle, Document


class VehicleSerializer(serializers.ModelSerializer):
    """Vehicle with image references resolved to URLs"""
    image_urls = serializers.SerializerMethodField()
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = Vehicle
        fields = [
            "id",
            "owner",
            "brand",
            "model",
            "display_name",
            "year",
            "license_plate",
            "color",
            "capacity",
            "image_urls",
            "features",
            "price_per_km",
            "base_fare",
            "category",
            "status",
            "featured",
            "created_at",
        ]
        read_only_fields = ["id", "owner", "status", "featured", "created_at"]

    def get_image_urls(self, obj):
        request = self.context.get("request")
        return [storage.get_url(ref, request) for ref in obj.images]


class VehicleRegistrationSerializer(serializers.Serializer):
    """
    Input for registering a vehicle, standalone or inside partner signup.
    """
    brand = serializers.CharField(max_length=50)
    model = serializers.CharField(max_length=50)
    year = serializers.CharField(max_length=4)
    license_plate = serializers.CharField(max_length=20)
    color = serializers.CharField(max_length=30, required=False, allow_blank=True)
    capacity = serializers.IntegerField(min_value=1)
    price_per_km = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0)
    base_fare = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0)
    category = serializers.ChoiceField(choices=Vehicle.CATEGORY_CHOICES, default=Vehicle.STANDARD)
    features = serializers.ListField(child=serializers.CharField(), required=False)


class VehicleUpdateSerializer(serializers.Serializer):
    brand = serializers.CharField(max_length=50, required=False)
    model = serializers.CharField(max_length=50, required=False)
    year = serializers.CharField(max_length=4, required=False)
    color = serializers.CharField(max_length=30, required=False, allow_blank=True)
    capacity = serializers.IntegerField(min_value=1, required=False)
    price_per_km = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False)
    base_fare = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False)
    category = serializers.ChoiceField(choices=Vehicle.CATEGORY_CHOICES, required=False)
    status = serializers.ChoiceField(choices=Vehicle.STATUS_CHOICES, required=False)
    features = serializers.ListField(child=serializers.CharField(), required=False)


class VehicleStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Vehicle.STATUS_CHOICES)


class FeaturedToggleSerializer(serializers.Serializer):
    featured = serializers.BooleanField()


class DocumentSerializer(serializers.ModelSerializer):
    file_url = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = [
            "id",
            "owner",
            "vehicle",
            "type",
            "file_url",
            "expiry_date",
            "status",
            "is_verified",
            "verified_at",
            "uploaded_at",
        ]
        read_only_fields = [
            "id", "owner", "vehicle", "type", "expiry_date", "status",
            "is_verified", "verified_at", "uploaded_at",
        ]

    def get_file_url(self, obj):
        return storage.get_url(obj.file, self.context.get("request"))


class DocumentUploadSerializer(serializers.Serializer):
    """Multipart upload: either a file, or a ref from an earlier upload"""
    type = serializers.ChoiceField(choices=Document.TYPE_CHOICES)
    file = serializers.FileField(required=False)
    file_ref = serializers.CharField(required=False)
    vehicle_id = serializers.IntegerField(required=False, allow_null=True)
    expiry_date = serializers.DateField(required=False, allow_null=True)

    def validate(self, data):
        if not data.get("file") and not data.get("file_ref"):
            raise serializers.ValidationError({"file": "A file or file_ref is required"})
        return data


class DocumentVerificationSerializer(serializers.Serializer):
    is_verified = serializers.BooleanField()


class DocumentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Document.STATUS_CHOICES)
