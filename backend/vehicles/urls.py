from django.urls import path

from .views import (
    VehicleListCreateView,
    VehicleDetailView,
    VehicleImageUploadView,
    FeaturedVehiclesView,
    VehicleFeaturedToggleView,
    VehicleStatusView,
    DocumentListCreateView,
    FileUploadView,
    VehicleDocumentsView,
    DocumentVerificationView,
    DocumentStatusView,
)

app_name = "vehicles"

urlpatterns = [
    path("", VehicleListCreateView.as_view(), name="vehicle-list"),
    path("featured/", FeaturedVehiclesView.as_view(), name="featured"),
    path("<int:vehicle_id>/", VehicleDetailView.as_view(), name="vehicle-detail"),
    path("<int:vehicle_id>/images/", VehicleImageUploadView.as_view(), name="vehicle-images"),
    path("<int:vehicle_id>/featured/", VehicleFeaturedToggleView.as_view(), name="toggle-featured"),
    path("<int:vehicle_id>/status/", VehicleStatusView.as_view(), name="vehicle-status"),
    path("<int:vehicle_id>/documents/", VehicleDocumentsView.as_view(), name="vehicle-documents"),

    # DOCUMENTS
    path("documents/", DocumentListCreateView.as_view(), name="document-list"),
    path("documents/upload/", FileUploadView.as_view(), name="file-upload"),
    path("documents/<int:document_id>/verify/", DocumentVerificationView.as_view(), name="document-verify"),
    path("documents/<int:document_id>/status/", DocumentStatusView.as_view(), name="document-status"),
]
