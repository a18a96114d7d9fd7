from rest_framework import serializers
from django.contrib.auth import authenticate

from common import storage
from vehicles.models import Document
from vehicles.serializers import VehicleRegistrationSerializer
from .models import User
from . import services


class UserSerializer(serializers.ModelSerializer):
    profile_picture_url = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "user_type",
            "first_name",
            "last_name",
            "phone_number",
            "languages",
            "rating",
            "completed_trips",
            "is_verified",
            "verification_status",
            "profile_picture",
            "profile_picture_url",
        ]
        read_only_fields = [
            "id", "user_type", "rating", "completed_trips",
            "is_verified", "verification_status", "profile_picture_url",
        ]
        extra_kwargs = {
            "profile_picture": {"write_only": True, "required": False}
        }

    def get_profile_picture_url(self, obj):
        """
        Absolute URL when a request is available.
        Mobile clients cannot resolve relative media paths.
        """
        return storage.get_url(obj.profile_picture, self.context.get("request"))


class PartnerSerializer(UserSerializer):
    """Partner view including onboarding details (used by admins and the partner)."""

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ["cin", "address", "city", "postal_code"]


class UserBasicSerializer(serializers.ModelSerializer):
    """
    Basic user representation used inside trip responses.
    """
    class Meta:
        model = User
        fields = ["id", "first_name", "last_name", "phone_number", "rating"]


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, data):
        user = authenticate(username=data["username"], password=data["password"])
        if not user:
            raise serializers.ValidationError("Invalid username or password")
        return user


class OnboardingDocumentSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=Document.TYPE_CHOICES)
    file = serializers.CharField(help_text="Storage reference returned by the upload endpoint")
    expiry_date = serializers.DateField(required=False, allow_null=True)
    for_vehicle = serializers.BooleanField(default=False)


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True)
    username = serializers.CharField(required=False)
    vehicle = VehicleRegistrationSerializer(required=False, write_only=True)
    documents = OnboardingDocumentSerializer(many=True, required=False, write_only=True)

    class Meta:
        model = User
        fields = [
            "username", "password", "email", "user_type", "first_name", "last_name",
            "phone_number", "languages", "cin", "address", "city", "postal_code",
            "vehicle", "documents",
        ]

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already exists")
        return value

    def validate(self, data):
        if data["user_type"] != User.PARTNER and (data.get("vehicle") or data.get("documents")):
            raise serializers.ValidationError({
                "user_type": "Only partners can register vehicles and documents"
            })
        return data

    def create(self, validated_data):
        password = validated_data.pop("password")
        user_type = validated_data.pop("user_type")
        vehicle = validated_data.pop("vehicle", None)
        documents = validated_data.pop("documents", [])
        validated_data.setdefault("username", validated_data["email"])

        if user_type == User.PARTNER:
            return services.register_partner(
                password=password,
                user_fields=validated_data,
                vehicle_fields=vehicle,
                documents=documents,
            )
        return services.create_user(password=password, user_type=user_type, **validated_data)


class VerificationStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[User.VERIFICATION_APPROVED, User.VERIFICATION_REJECTED])
