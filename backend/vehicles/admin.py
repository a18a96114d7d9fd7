from django.contrib import admin

from vehicles.models import Vehicle, Document
from vehicles import services


@admin.action(description="Activate selected vehicles")
def activate_vehicles(modeladmin, request, queryset):
    for vehicle in queryset:
        services.set_vehicle_status(vehicle.pk, Vehicle.ACTIVE)


@admin.action(description="Mark selected documents as verified")
def verify_documents(modeladmin, request, queryset):
    for document in queryset:
        services.verify_document(document.pk, True)


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = [
        "license_plate",
        "brand",
        "model",
        "owner",
        "category",
        "capacity",
        "status",
        "featured",
    ]
    list_filter = ["status", "category", "featured"]
    search_fields = ["license_plate", "brand", "model", "owner__email"]
    actions = [activate_vehicles]


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ["owner", "type", "vehicle", "status", "is_verified", "expiry_date", "uploaded_at"]
    list_filter = ["type", "status", "is_verified"]
    search_fields = ["owner__email", "owner__username"]
    readonly_fields = ["uploaded_at", "verified_at"]
    actions = [verify_documents]
