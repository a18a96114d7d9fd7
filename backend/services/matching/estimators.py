"""
Distance estimators for the driver matcher.

An estimator turns (partner, pickup point) into a distance and a live status,
or None when the partner cannot be matched at all. The matcher's filtering
never depends on which estimator is configured.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from common.utils import calculate_distance
from drivers.models import DriverProfile

logger = logging.getLogger(__name__)

AVAILABLE = "available"
FINISHING_SOON = "finishing_soon"


@dataclass(frozen=True)
class Estimate:
    distance_km: float
    status: str


class DistanceEstimator:
    """Interface: estimate(partner, latitude, longitude) -> Estimate | None"""

    name = "base"

    def estimate(self, partner, latitude: float, longitude: float) -> Optional[Estimate]:
        raise NotImplementedError


class SimulatedDistanceEstimator(DistanceEstimator):
    """
    Deterministic placeholder: distance and status derive from the partner id,
    not from the pickup coordinates.

    hash = sum of the code points of str(partner.id)
    distance = 0.5 + (hash % 45) / 10 km   -> [0.5, 5.0)
    status = finishing_soon when hash % 5 == 0
    """

    name = "simulated"

    @staticmethod
    def _hash(partner_id) -> int:
        return sum(ord(ch) for ch in str(partner_id))

    def estimate(self, partner, latitude, longitude):
        h = self._hash(partner.pk)
        return Estimate(
            distance_km=0.5 + (h % 45) / 10,
            status=FINISHING_SOON if h % 5 == 0 else AVAILABLE,
        )


class HaversineDistanceEstimator(DistanceEstimator):
    """
    Great-circle distance to the partner's last reported DriverProfile position.

    Partners without a profile or a position, or who are offline, are not
    matchable. A busy partner is reported as finishing_soon.
    """

    name = "haversine"

    def estimate(self, partner, latitude, longitude):
        profile = getattr(partner, "driver_profile", None)
        if profile is None or not profile.has_location:
            return None
        if profile.status == DriverProfile.OFFLINE:
            return None

        meters = calculate_distance(
            latitude, longitude,
            profile.current_latitude, profile.current_longitude,
        )
        status = FINISHING_SOON if profile.status == DriverProfile.BUSY else AVAILABLE
        return Estimate(distance_km=meters / 1000.0, status=status)


ESTIMATORS = {
    SimulatedDistanceEstimator.name: SimulatedDistanceEstimator,
    HaversineDistanceEstimator.name: HaversineDistanceEstimator,
}


def get_estimator(name: str = None) -> DistanceEstimator:
    """Instantiate the estimator named by MATCHER_DISTANCE_ESTIMATOR (or `name`)."""
    name = name or getattr(settings, "MATCHER_DISTANCE_ESTIMATOR", SimulatedDistanceEstimator.name)
    try:
        return ESTIMATORS[name]()
    except KeyError:
        raise ImproperlyConfigured(
            f"Unknown MATCHER_DISTANCE_ESTIMATOR {name!r}; expected one of {sorted(ESTIMATORS)}"
        )
