"""
Vehicle and document operations.

Vehicles start inactive and are activated by an admin once the partner's
documents are verified. Documents are unique per (owner, type): a new upload
replaces the previous file in place and clears its verification.
"""

import logging
from datetime import date
from typing import List, Optional

from django.db import transaction, IntegrityError
from django.utils import timezone

from common import storage
from common.exceptions import (
    NotFoundError,
    DomainValidationError,
    InvalidStateError,
    UnauthorizedError,
)
from trips.models import Trip
from vehicles.models import Vehicle, Document

logger = logging.getLogger(__name__)

VEHICLE_UPDATABLE_FIELDS = [
    "brand", "model", "year", "color", "capacity", "images", "features",
    "price_per_km", "base_fare", "category", "status",
]

# Owners may take a vehicle out of service; only admins activate it
OWNER_SETTABLE_STATUSES = [Vehicle.INACTIVE, Vehicle.MAINTENANCE]


# ===================== Vehicles =====================

def get_vehicle(vehicle_id) -> Vehicle:
    try:
        return Vehicle.objects.select_related("owner").get(pk=vehicle_id)
    except Vehicle.DoesNotExist:
        raise NotFoundError("Vehicle not found", error_code="vehicle_not_found")


def _ensure_can_manage(vehicle: Vehicle, actor):
    if vehicle.owner_id != actor.pk and not actor.is_staff:
        raise UnauthorizedError("You do not own this vehicle")


def _lock_vehicle(vehicle_id) -> Vehicle:
    vehicle = Vehicle.objects.select_for_update().filter(pk=vehicle_id).first()
    if vehicle is None:
        raise NotFoundError("Vehicle not found", error_code="vehicle_not_found")
    return vehicle


def _ensure_not_in_use(vehicle: Vehicle):
    """A vehicle bound to an ongoing trip has to stay active until the trip ends."""
    if Trip.objects.filter(vehicle=vehicle, status__in=Trip.ACTIVE_STATUSES).exists():
        raise InvalidStateError(
            "Vehicle is assigned to an ongoing trip",
            error_code="vehicle_in_use",
        )


def register_vehicle(owner, **fields) -> Vehicle:
    """
    Register a vehicle for a partner. The vehicle starts inactive.

    Raises:
        DomainValidationError: owner is not a partner, or the plate is taken
    """
    if not getattr(owner, "is_partner", False):
        raise DomainValidationError("Only partners can register vehicles", error_code="invalid_owner")

    plate = (fields.get("license_plate") or "").strip().upper()
    if not plate:
        raise DomainValidationError("License plate is required")
    fields["license_plate"] = plate

    if Vehicle.objects.filter(license_plate__iexact=plate).exists():
        raise DomainValidationError(
            "Vehicle with this license plate already exists",
            error_code="duplicate_license_plate",
        )

    fields.pop("status", None)
    try:
        with transaction.atomic():
            vehicle = Vehicle.objects.create(owner=owner, status=Vehicle.INACTIVE, **fields)
    except IntegrityError:
        # Lost a race against a concurrent registration of the same plate
        raise DomainValidationError(
            "Vehicle with this license plate already exists",
            error_code="duplicate_license_plate",
        )

    logger.info("Registered vehicle %s (%s) for partner %s", vehicle.id, plate, owner.id)
    return vehicle


def update_vehicle(vehicle_id, actor, **updates) -> Vehicle:
    updates = {k: v for k, v in updates.items() if k in VEHICLE_UPDATABLE_FIELDS and v is not None}
    new_status = updates.get("status")
    if new_status and not actor.is_staff and new_status not in OWNER_SETTABLE_STATUSES:
        raise UnauthorizedError("Only an administrator can activate a vehicle")

    with transaction.atomic():
        vehicle = _lock_vehicle(vehicle_id)
        _ensure_can_manage(vehicle, actor)
        if new_status and new_status != Vehicle.ACTIVE:
            _ensure_not_in_use(vehicle)

        for field, value in updates.items():
            setattr(vehicle, field, value)
        if new_status and new_status != Vehicle.ACTIVE and vehicle.featured:
            vehicle.featured = False
            updates["featured"] = False
        if updates:
            vehicle.save(update_fields=list(updates.keys()))
    return vehicle


@transaction.atomic
def set_vehicle_status(vehicle_id, status: str) -> Vehicle:
    """Admin action: activate, deactivate or put a vehicle in maintenance."""
    if status not in dict(Vehicle.STATUS_CHOICES):
        raise DomainValidationError(f"Unknown vehicle status: {status}")
    vehicle = _lock_vehicle(vehicle_id)
    if status != Vehicle.ACTIVE:
        _ensure_not_in_use(vehicle)
    vehicle.status = status
    fields = ["status"]
    if status != Vehicle.ACTIVE and vehicle.featured:
        vehicle.featured = False
        fields.append("featured")
    vehicle.save(update_fields=fields)
    logger.info("Vehicle %s status -> %s", vehicle.id, status)
    return vehicle


def add_vehicle_image(vehicle_id, actor, uploaded_file) -> Vehicle:
    vehicle = get_vehicle(vehicle_id)
    _ensure_can_manage(vehicle, actor)
    ref = storage.save_upload(uploaded_file, folder=f"vehicles/{vehicle.id}")
    vehicle.images = [*vehicle.images, ref]
    vehicle.save(update_fields=["images"])
    return vehicle


def list_owner_vehicles(owner_id) -> List[Vehicle]:
    return list(Vehicle.objects.filter(owner_id=owner_id))


def get_featured_vehicles(limit: int = 10) -> List[Vehicle]:
    """Featured active vehicles, or any active vehicles when none are featured."""
    featured = list(Vehicle.objects.filter(status=Vehicle.ACTIVE, featured=True)[:limit])
    if featured:
        return featured
    return list(Vehicle.objects.filter(status=Vehicle.ACTIVE)[:limit])


def toggle_featured(vehicle_id, featured: bool) -> Vehicle:
    vehicle = get_vehicle(vehicle_id)
    if featured and vehicle.status != Vehicle.ACTIVE:
        raise InvalidStateError("Only active vehicles can be featured", error_code="vehicle_not_active")
    vehicle.featured = featured
    vehicle.save(update_fields=["featured"])
    return vehicle


# ===================== Documents =====================

def get_document(document_id) -> Document:
    try:
        return Document.objects.get(pk=document_id)
    except Document.DoesNotExist:
        raise NotFoundError("Document not found", error_code="document_not_found")


@transaction.atomic
def upload_document(
    owner,
    doc_type: str,
    file_ref,
    vehicle_id=None,
    expiry_date: Optional[date] = None,
) -> Document:
    """
    Store the owner's document of the given type, replacing any previous one.

    A replaced document is marked valid again and must be re-verified.
    """
    if doc_type not in dict(Document.TYPE_CHOICES):
        raise DomainValidationError(f"Unknown document type: {doc_type}")

    if vehicle_id is not None:
        vehicle = get_vehicle(vehicle_id)
        if vehicle.owner_id != owner.pk:
            raise UnauthorizedError("Document vehicle must belong to the uploader")

    document = (
        Document.objects.select_for_update()
        .filter(owner=owner, type=doc_type)
        .first()
    )
    if document is None:
        document = Document(owner=owner, type=doc_type)

    document.file = file_ref
    document.vehicle_id = vehicle_id
    document.expiry_date = expiry_date
    document.status = Document.VALID
    document.is_verified = False
    document.verified_at = None
    document.save()

    logger.info("Stored %s document %s for user %s", doc_type, document.id, owner.id)
    return document


def list_user_documents(owner_id) -> List[Document]:
    return list(Document.objects.filter(owner_id=owner_id).order_by("type"))


def list_vehicle_documents(vehicle_id) -> List[Document]:
    return list(Document.objects.filter(vehicle_id=vehicle_id).order_by("type"))


def verify_document(document_id, is_verified: bool) -> Document:
    """Admin action: mark a document verified (or revoke verification)."""
    document = get_document(document_id)
    document.is_verified = is_verified
    document.verified_at = timezone.now() if is_verified else None
    document.save(update_fields=["is_verified", "verified_at"])
    return document


def update_document_status(document_id, status: str) -> Document:
    if status not in (Document.VALID, Document.EXPIRED):
        raise DomainValidationError("Status must be 'valid' or 'expired'")
    document = get_document(document_id)
    document.status = status
    document.save(update_fields=["status"])
    return document


def expire_documents(today: Optional[date] = None) -> int:
    """Mark every valid document whose expiry date has passed as expired."""
    today = today or timezone.localdate()
    expired = Document.objects.filter(
        status=Document.VALID,
        expiry_date__isnull=False,
        expiry_date__lt=today,
    ).update(status=Document.EXPIRED)
    if expired:
        logger.info("Expired %d document(s) past their expiry date", expired)
    return expired
