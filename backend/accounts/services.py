"""
Account operations: registration, profile updates and partner verification.

Partner onboarding creates the user, the driver profile, the first vehicle
and the identity documents as one unit; any failure rolls all of them back
and is re-raised to the caller.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from django.contrib.auth import get_user_model
from django.db import transaction, IntegrityError

from common.exceptions import NotFoundError, DomainValidationError, InvalidStateError

User = get_user_model()
logger = logging.getLogger(__name__)

PARTNER_PROFILE_FIELDS = [
    "first_name", "last_name", "email", "phone_number", "languages",
    "cin", "address", "city", "postal_code", "profile_picture",
]


def get_user(user_id) -> User:
    try:
        return User.objects.get(pk=user_id)
    except User.DoesNotExist:
        raise NotFoundError("User not found", error_code="user_not_found")


def get_user_by_email(email: str) -> Optional[User]:
    return User.objects.filter(email__iexact=email).first()


def _ensure_email_available(email: str, exclude_id=None):
    qs = User.objects.filter(email__iexact=email)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    if qs.exists():
        raise DomainValidationError("User with this email already exists", error_code="duplicate_email")


def create_user(password: str, **fields) -> User:
    """
    Create a client or partner account.

    Clients are auto-approved; partners start unverified with a pending
    verification status.
    """
    user_type = fields.get("user_type")
    if user_type not in (User.CLIENT, User.PARTNER):
        raise DomainValidationError("user_type must be 'client' or 'partner'")

    _ensure_email_available(fields.get("email", ""))

    if user_type == User.PARTNER:
        fields.update(is_verified=False, verification_status=User.VERIFICATION_PENDING)
    else:
        fields.update(is_verified=True, verification_status=User.VERIFICATION_NONE)

    try:
        with transaction.atomic():
            user = User.objects.create_user(password=password, **fields)
    except IntegrityError:
        raise DomainValidationError("Username or email already taken", error_code="duplicate_user")

    logger.info("Created %s account %s", user_type, user.id)
    return user


@transaction.atomic
def register_partner(
    password: str,
    user_fields: Dict[str, Any],
    vehicle_fields: Optional[Dict[str, Any]] = None,
    documents: Iterable[Dict[str, Any]] = (),
) -> User:
    """
    Register a partner together with their driver profile, vehicle and documents.

    Args:
        password: Raw password for the new account
        user_fields: User model fields (email, username, names, ...)
        vehicle_fields: Optional vehicle registration fields
        documents: Iterable of {"type", "file", "expiry_date"} dicts, where
            "file" is a storage reference returned by the upload endpoint

    Returns:
        The created partner

    Raises:
        DomainValidationError: duplicate email / license plate or bad input.
            Nothing is persisted in that case.
    """
    from drivers.models import DriverProfile
    from vehicles import services as vehicle_services

    documents = list(documents)

    user = create_user(password=password, user_type=User.PARTNER, **user_fields)
    DriverProfile.objects.create(user=user)

    vehicle = None
    if vehicle_fields:
        vehicle = vehicle_services.register_vehicle(user, **vehicle_fields)

    for doc in documents:
        vehicle_services.upload_document(
            owner=user,
            doc_type=doc["type"],
            file_ref=doc["file"],
            vehicle_id=vehicle.id if vehicle and doc.get("for_vehicle") else None,
            expiry_date=doc.get("expiry_date"),
        )

    logger.info(
        "Partner %s onboarded (vehicle=%s, documents=%d)",
        user.id, getattr(vehicle, "id", None), len(documents),
    )
    return user


def update_profile(user: User, **updates) -> User:
    """Patch profile fields, ignoring keys whose value is None."""
    updates = {k: v for k, v in updates.items() if v is not None}
    if "email" in updates:
        _ensure_email_available(updates["email"], exclude_id=user.pk)

    for field, value in updates.items():
        setattr(user, field, value)
    if updates:
        user.save(update_fields=list(updates.keys()))
    return user


def update_partner_profile(partner: User, **updates) -> User:
    """
    Update a partner's registration data; any change sends them back to review.
    """
    if not partner.is_partner:
        raise InvalidStateError("User is not a partner", error_code="not_a_partner")

    updates = {k: v for k, v in updates.items() if k in PARTNER_PROFILE_FIELDS}
    update_profile(partner, **updates)

    partner.verification_status = User.VERIFICATION_PENDING
    partner.is_verified = False
    partner.save(update_fields=["verification_status", "is_verified"])
    return partner


def update_verification_status(partner_id, status: str) -> User:
    """Admin action: approve or reject a partner."""
    if status not in (User.VERIFICATION_APPROVED, User.VERIFICATION_REJECTED):
        raise DomainValidationError("Status must be 'approved' or 'rejected'")

    partner = User.objects.filter(pk=partner_id, user_type=User.PARTNER).first()
    if partner is None:
        raise NotFoundError("Partner not found", error_code="partner_not_found")

    partner.verification_status = status
    partner.is_verified = status == User.VERIFICATION_APPROVED
    partner.save(update_fields=["verification_status", "is_verified"])

    logger.info("Partner %s verification set to %s", partner.id, status)
    return partner


def list_partners(verification_status: Optional[str] = None, limit: Optional[int] = None):
    qs = User.objects.filter(user_type=User.PARTNER).order_by("-date_joined")
    if verification_status:
        qs = qs.filter(verification_status=verification_status)
    if limit:
        qs = qs[:limit]
    return list(qs)
