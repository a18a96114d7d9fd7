import logging

from django.utils import timezone

from common.exceptions import NotFoundError
from drivers.models import DriverProfile

logger = logging.getLogger(__name__)


def get_driver_profile(partner) -> DriverProfile:
    """Return the partner's profile, creating an offline one if missing."""
    if not partner.is_partner:
        raise NotFoundError("Driver profile not found", error_code="driver_profile_not_found")
    profile, _ = DriverProfile.objects.get_or_create(user=partner)
    return profile


def update_driver_status(profile: DriverProfile, new_status: str) -> DriverProfile:
    """Update driver availability status."""
    profile.status = new_status
    profile.save(update_fields=["status"])
    logger.info("Driver %s status -> %s", profile.user_id, new_status)
    return profile


def update_driver_location(profile: DriverProfile, lat, lon) -> DriverProfile:
    """
    Update driver location, used by the HTTP location endpoint and
    read back by the haversine distance estimator.
    """
    profile.current_latitude = lat
    profile.current_longitude = lon
    profile.last_location_update = timezone.now()
    profile.save(update_fields=["current_latitude", "current_longitude", "last_location_update"])
    return profile


def set_partner_availability(partner_id, new_status: str):
    """Flip a partner's availability after a trip binds or releases them."""
    updated = DriverProfile.objects.filter(user_id=partner_id).update(status=new_status)
    if not updated:
        logger.debug("Partner %s has no driver profile; availability not tracked", partner_id)
    return bool(updated)
