"""Read-side trip queries used by the client and driver views."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence, Union

from django.db.models import Max, Q
from django.utils import timezone

from trips.models import Trip
from vehicles.models import Vehicle
from .exceptions import NotTripParticipantError
from .lifecycle import get_trip

StatusFilter = Optional[Union[str, Sequence[str]]]


def _filter_status(qs, status: StatusFilter):
    if not status:
        return qs
    if isinstance(status, str):
        return qs.filter(status=status)
    return qs.filter(status__in=list(status))


def get_trip_for_participant(trip_id, user) -> Trip:
    """
    A trip as seen by one of its participants. Partners may also view a
    still-open request so they can decide whether to accept it.
    """
    trip = get_trip(trip_id)
    if trip.is_participant(user) or user.is_staff:
        return trip
    if user.is_partner and trip.status == Trip.WAITING_APPROVAL and trip.partner_id is None:
        return trip
    raise NotTripParticipantError()


def list_client_trips(client, status: StatusFilter = None, limit: int = 100) -> List[Trip]:
    qs = Trip.objects.filter(client=client).select_related("partner", "vehicle")
    return list(_filter_status(qs, status)[:limit])


def list_partner_trips(
    partner,
    status: StatusFilter = None,
    limit: int = 100,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[Trip]:
    qs = Trip.objects.filter(partner=partner).select_related("client", "vehicle")
    qs = _filter_status(qs, status)
    if start:
        qs = qs.filter(created_at__gte=start)
    if end:
        qs = qs.filter(created_at__lte=end)
    return list(qs[:limit])


def list_open_trip_requests(partner, limit: int = 10) -> List[Trip]:
    """
    Waiting, unassigned trips this partner has not declined and can carry
    with their largest active vehicle. Oldest first.
    """
    max_capacity = (
        Vehicle.objects.filter(owner=partner, status=Vehicle.ACTIVE)
        .aggregate(max_capacity=Max("capacity"))["max_capacity"]
    )
    if not max_capacity:
        return []

    qs = (
        Trip.objects.filter(
            status=Trip.WAITING_APPROVAL,
            partner__isnull=True,
            passengers__lte=max_capacity,
        )
        .exclude(declines__partner=partner)
        .select_related("client")
        .order_by("created_at", "id")
    )
    return list(qs[:limit])


def get_current_client_trip(client) -> Optional[Trip]:
    return (
        Trip.objects.filter(
            client=client,
            status__in=[Trip.WAITING_APPROVAL, *Trip.ACTIVE_STATUSES],
        )
        .select_related("partner", "vehicle")
        .order_by("-created_at")
        .first()
    )


def get_current_partner_trip(partner) -> Optional[Trip]:
    """The assigned trip the partner is currently driving (or about to)."""
    return (
        Trip.objects.filter(partner=partner, status__in=Trip.ACTIVE_STATUSES)
        .exclude(Q(status=Trip.ACCEPTED) & Q(is_scheduled=True) & Q(departure_at__gt=timezone.now()))
        .select_related("client", "vehicle")
        .order_by("accepted_at")
        .first()
    )


def list_upcoming_partner_trips(partner) -> List[Trip]:
    """Accepted scheduled trips that have not departed yet, soonest first."""
    return list(
        Trip.objects.filter(
            partner=partner,
            status=Trip.ACCEPTED,
            is_scheduled=True,
            departure_at__gt=timezone.now(),
        )
        .select_related("client", "vehicle")
        .order_by("departure_at")
    )


def count_user_trips(user, status: StatusFilter = None) -> int:
    qs = Trip.objects.filter(Q(client=user) | Q(partner=user))
    return _filter_status(qs, status).count()


def get_total_earnings(partner) -> Decimal:
    """Sum of pricing.total over the partner's completed trips."""
    totals = Trip.objects.filter(
        partner=partner,
        status=Trip.COMPLETED,
        pricing__isnull=False,
    ).values_list("pricing", flat=True)

    earnings = Decimal("0")
    for pricing in totals:
        earnings += Decimal(str((pricing or {}).get("total") or 0))
    return earnings
