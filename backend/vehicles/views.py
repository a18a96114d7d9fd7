from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.permissions import AllowAny, IsAuthenticated, IsAdminUser

from accounts.permissions import IsPartner
from common import storage
from common.exceptions import UnauthorizedError
from common.utils import parse_limit
from vehicles import services
from vehicles.serializers import (
    VehicleSerializer,
    VehicleRegistrationSerializer,
    VehicleUpdateSerializer,
    VehicleStatusSerializer,
    FeaturedToggleSerializer,
    DocumentSerializer,
    DocumentUploadSerializer,
    DocumentVerificationSerializer,
    DocumentStatusSerializer,
)


class VehicleListCreateView(APIView):
    """
    GET  -> vehicles owned by the authenticated partner
    POST -> register a new vehicle (starts inactive)
    """
    permission_classes = [IsAuthenticated, IsPartner]

    def get(self, request):
        vehicles = services.list_owner_vehicles(request.user.id)
        data = VehicleSerializer(vehicles, many=True, context={"request": request}).data
        return Response({"count": len(data), "vehicles": data})

    def post(self, request):
        serializer = VehicleRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        vehicle = services.register_vehicle(request.user, **serializer.validated_data)
        return Response(
            VehicleSerializer(vehicle, context={"request": request}).data,
            status=status.HTTP_201_CREATED,
        )


class VehicleDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, vehicle_id):
        vehicle = services.get_vehicle(vehicle_id)
        return Response(VehicleSerializer(vehicle, context={"request": request}).data)

    def patch(self, request, vehicle_id):
        serializer = VehicleUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        vehicle = services.update_vehicle(vehicle_id, request.user, **serializer.validated_data)
        return Response(VehicleSerializer(vehicle, context={"request": request}).data)


class VehicleImageUploadView(APIView):
    """POST multipart 'image' -> appended to the vehicle's images"""
    permission_classes = [IsAuthenticated, IsPartner]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request, vehicle_id):
        image = request.FILES.get("image")
        if image is None:
            return Response({"error": "image file is required"}, status=status.HTTP_400_BAD_REQUEST)

        vehicle = services.add_vehicle_image(vehicle_id, request.user, image)
        return Response(VehicleSerializer(vehicle, context={"request": request}).data)


class FeaturedVehiclesView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        limit = parse_limit(request, default=10)
        vehicles = services.get_featured_vehicles(limit=limit)
        data = VehicleSerializer(vehicles, many=True, context={"request": request}).data
        return Response({"count": len(data), "vehicles": data})


class VehicleFeaturedToggleView(APIView):
    """Admin: feature or unfeature an active vehicle"""
    permission_classes = [IsAdminUser]

    def post(self, request, vehicle_id):
        serializer = FeaturedToggleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        vehicle = services.toggle_featured(vehicle_id, serializer.validated_data["featured"])
        return Response(VehicleSerializer(vehicle, context={"request": request}).data)


class VehicleStatusView(APIView):
    """Admin: activate / deactivate a vehicle"""
    permission_classes = [IsAdminUser]

    def post(self, request, vehicle_id):
        serializer = VehicleStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        vehicle = services.set_vehicle_status(vehicle_id, serializer.validated_data["status"])
        return Response(VehicleSerializer(vehicle, context={"request": request}).data)


# ==================== Documents ====================

class DocumentListCreateView(APIView):
    """
    GET  -> the authenticated user's documents
    POST -> upload (or replace) a document of a given type
    """
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def get(self, request):
        documents = services.list_user_documents(request.user.id)
        data = DocumentSerializer(documents, many=True, context={"request": request}).data
        return Response({"count": len(data), "documents": data})

    def post(self, request):
        serializer = DocumentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        file_ref = data.get("file_ref")
        if data.get("file"):
            file_ref = storage.save_upload(data["file"], folder=f"documents/{request.user.id}")

        document = services.upload_document(
            owner=request.user,
            doc_type=data["type"],
            file_ref=file_ref,
            vehicle_id=data.get("vehicle_id"),
            expiry_date=data.get("expiry_date"),
        )
        return Response(
            DocumentSerializer(document, context={"request": request}).data,
            status=status.HTTP_201_CREATED,
        )


class FileUploadView(APIView):
    """
    Store a file before registration and return its reference, which the
    signup payload then lists under "documents".
    """
    permission_classes = [AllowAny]
    authentication_classes = []
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        upload = request.FILES.get("file")
        if upload is None:
            return Response({"error": "file is required"}, status=status.HTTP_400_BAD_REQUEST)

        ref = storage.save_upload(upload, folder="onboarding")
        return Response({"file": ref, "url": storage.get_url(ref, request)}, status=status.HTTP_201_CREATED)


class VehicleDocumentsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, vehicle_id):
        vehicle = services.get_vehicle(vehicle_id)
        if vehicle.owner_id != request.user.id and not request.user.is_staff:
            raise UnauthorizedError("You do not own this vehicle")

        documents = services.list_vehicle_documents(vehicle.id)
        data = DocumentSerializer(documents, many=True, context={"request": request}).data
        return Response({"count": len(data), "documents": data})


class DocumentVerificationView(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request, document_id):
        serializer = DocumentVerificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        document = services.verify_document(document_id, serializer.validated_data["is_verified"])
        return Response(DocumentSerializer(document, context={"request": request}).data)


class DocumentStatusView(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request, document_id):
        serializer = DocumentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        document = services.update_document_status(document_id, serializer.validated_data["status"])
        return Response(DocumentSerializer(document, context={"request": request}).data)
