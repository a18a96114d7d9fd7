"""
Find candidate drivers for a pickup point.

Only verified partners with at least one active vehicle matching the
requested category and capacity are considered. Each partner is represented
by their first matching vehicle (lowest id); partners with several vehicles
are not offered more than once.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError

from common.exceptions import UpstreamUnavailableError
from common.utils import round_half_up
from vehicles.models import Vehicle
from .estimators import DistanceEstimator, get_estimator

User = get_user_model()
logger = logging.getLogger(__name__)

DEFAULT_RATING = 4.5
# 30 km/h
MINUTES_PER_KM = 2


@dataclass
class DriverCandidate:
    """One matchable driver; image fields hold storage refs."""
    id: int
    name: str
    photo: Optional[str]
    vehicle: Dict[str, object]
    rating: float
    distance_km: float
    eta_minutes: int
    price_range: Dict[str, int] = field(default_factory=dict)
    status: str = "available"


def _build_candidate(partner, vehicle: Vehicle, distance_km: float, status: str) -> DriverCandidate:
    base_fare = float(vehicle.base_fare)
    return DriverCandidate(
        id=partner.pk,
        name=partner.full_name,
        photo=partner.profile_picture.name if partner.profile_picture else None,
        vehicle={
            "id": vehicle.pk,
            "model": vehicle.display_name,
            "type": vehicle.category,
            "image": vehicle.images[0] if vehicle.images else None,
            "capacity": vehicle.capacity,
        },
        rating=partner.rating if partner.rating is not None else DEFAULT_RATING,
        distance_km=distance_km,
        eta_minutes=round_half_up(distance_km * MINUTES_PER_KM),
        price_range={
            "min": round_half_up(base_fare),
            "max": round_half_up(base_fare * 1.5),
        },
        status=status,
    )


def _first_vehicle_per_owner(category: Optional[str], min_capacity: Optional[int]) -> Dict[int, Vehicle]:
    vehicles = Vehicle.objects.filter(status=Vehicle.ACTIVE).order_by("id")
    if category:
        vehicles = vehicles.filter(category=category)
    if min_capacity is not None:
        vehicles = vehicles.filter(capacity__gte=min_capacity)

    first: Dict[int, Vehicle] = {}
    for vehicle in vehicles:
        first.setdefault(vehicle.owner_id, vehicle)
    return first


def find_available_drivers(
    latitude: float,
    longitude: float,
    max_distance_km: Optional[float] = None,
    category: Optional[str] = None,
    min_capacity: Optional[int] = None,
    estimator: Optional[DistanceEstimator] = None,
) -> List[DriverCandidate]:
    """
    Candidate drivers for a pickup point, in natural (partner id) order.

    Args:
        latitude: Pickup latitude
        longitude: Pickup longitude
        max_distance_km: Drop candidates farther than this
        category: Vehicle category filter (standard/premium/luxury/van)
        min_capacity: Minimum vehicle capacity
        estimator: Overrides the configured DistanceEstimator

    Returns:
        List of DriverCandidate; empty when nobody matches

    Raises:
        UpstreamUnavailableError: if the database lookup fails
    """
    estimator = estimator or get_estimator()
    max_candidates = getattr(settings, "MATCHER_MAX_CANDIDATES", 50)
    time_budget = getattr(settings, "MATCHER_TIME_BUDGET_SECONDS", 2.0)

    try:
        vehicles_by_owner = _first_vehicle_per_owner(category, min_capacity)
        partners = list(
            User.objects.filter(
                user_type=User.PARTNER,
                is_verified=True,
                id__in=list(vehicles_by_owner.keys()),
            )
            .select_related("driver_profile")
            .order_by("id")
        )
    except DatabaseError as e:
        logger.exception("Driver lookup failed")
        raise UpstreamUnavailableError(f"Driver lookup failed: {e}")

    started = time.monotonic()
    candidates: List[DriverCandidate] = []

    for partner in partners:
        if len(candidates) >= max_candidates:
            logger.warning("Matcher hit MATCHER_MAX_CANDIDATES=%s; returning partial list", max_candidates)
            break
        if time.monotonic() - started > time_budget:
            logger.warning(
                "Matcher exceeded %.1fs budget after %d candidates; returning partial list",
                time_budget, len(candidates),
            )
            break

        estimate = estimator.estimate(partner, latitude, longitude)
        if estimate is None:
            continue
        if max_distance_km is not None and estimate.distance_km > max_distance_km:
            continue

        candidates.append(
            _build_candidate(partner, vehicles_by_owner[partner.pk], estimate.distance_km, estimate.status)
        )

    logger.info(
        "Matched %d driver(s) near (%s, %s) using %s estimator",
        len(candidates), latitude, longitude, estimator.name,
    )
    return candidates
