"""
Pre-departure reminders for scheduled trips.

Run every 5 minutes (Celery beat, or the check_upcoming_trips management
command). For each scheduled trip that has not been picked up yet, the due
reminder is the tightest threshold the departure time has crossed:

    minutes_until = (departure_at - now) / 60s
    due = min(t for t in thresholds if 0 < minutes_until <= t)

A reminder is emitted only if `due` is not already in trip.reminders_sent.
Emitting it also records every larger threshold, so a late sweep never
sends a stale 30-minute reminder after the 15-minute one.
"""

import logging
from typing import Dict, Iterable, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from common.exceptions import DomainValidationError, InvalidStateError, NotFoundError
from trips.models import Trip

logger = logging.getLogger(__name__)

# Trips that are booked but not yet picked up
REMINDER_STATUSES = [Trip.WAITING_APPROVAL, Trip.ACCEPTED, Trip.DRIVER_ON_THE_WAY]


def minutes_until(departure_at, now) -> float:
    return (departure_at - now).total_seconds() / 60


def due_threshold(minutes: float, thresholds: Iterable[int]) -> Optional[int]:
    for threshold in sorted(thresholds):
        if 0 < minutes <= threshold:
            return threshold
    return None


def _send_reminders(trip: Trip, threshold: int):
    from notifications.services import create_notification

    create_notification(
        trip.client_id,
        "trip",
        "Upcoming Trip Reminder",
        f"Your scheduled trip is coming up in {threshold} minutes. "
        "Please be ready at the pickup location.",
        related_id=trip.pk,
    )
    if trip.partner_id:
        create_notification(
            trip.partner_id,
            "trip",
            "Upcoming Trip Reminder",
            f"You have a scheduled trip starting in {threshold} minutes. "
            "Please prepare to pick up your passenger.",
            related_id=trip.pk,
        )


def send_trip_reminder(trip_id, minutes_before: int) -> Trip:
    """
    Send an "Upcoming Trip Reminder" for one scheduled trip right away.

    Goes out regardless of the sweep window and does not touch
    trip.reminders_sent, so the periodic reminders still fire.

    Raises:
        DomainValidationError: minutes_before is not a positive integer
        NotFoundError: the trip does not exist
        InvalidStateError: the trip is not a scheduled trip
    """
    if isinstance(minutes_before, bool) or not isinstance(minutes_before, int) or minutes_before < 1:
        raise DomainValidationError(
            "minutes_before must be a positive integer", error_code="invalid_minutes_before"
        )

    trip = Trip.objects.filter(pk=trip_id).first()
    if trip is None:
        raise NotFoundError("Trip not found", error_code="trip_not_found")
    if not trip.is_scheduled:
        raise InvalidStateError("Trip is not scheduled", error_code="trip_not_scheduled")

    _send_reminders(trip, minutes_before)
    logger.info("Sent manual %s-minute reminder for trip %s", minutes_before, trip.pk)
    return trip


@transaction.atomic
def _remind_trip(trip_id, now, thresholds) -> bool:
    """Emit the due reminder for one trip under a row lock. True if one was sent."""
    trip = (
        Trip.objects.select_for_update()
        .filter(pk=trip_id, status__in=REMINDER_STATUSES, is_scheduled=True)
        .first()
    )
    if trip is None or trip.departure_at is None:
        return False

    threshold = due_threshold(minutes_until(trip.departure_at, now), thresholds)
    sent = set(trip.reminders_sent or [])
    if threshold is None or threshold in sent:
        return False

    sent.update(t for t in thresholds if t >= threshold)
    trip.reminders_sent = sorted(sent, reverse=True)
    trip.save(update_fields=["reminders_sent"])

    _send_reminders(trip, threshold)
    logger.info("Sent %s-minute reminder for trip %s", threshold, trip.pk)
    return True


def check_upcoming_trips(now=None) -> Dict[str, int]:
    """
    Sweep scheduled trips and emit due reminders.

    Returns:
        {"processed": trips inspected, "notifications_sent": reminders emitted}
    """
    now = now or timezone.now()
    thresholds = tuple(getattr(settings, "TRIP_REMINDER_THRESHOLDS", (30, 15, 5)))

    trip_ids = list(
        Trip.objects.filter(
            is_scheduled=True,
            status__in=REMINDER_STATUSES,
            departure_at__isnull=False,
            departure_at__gt=now,
        ).values_list("id", flat=True)
    )

    notifications_sent = 0
    for trip_id in trip_ids:
        try:
            if _remind_trip(trip_id, now, thresholds):
                notifications_sent += 1
        except Exception:
            logger.exception("Error processing scheduled trip %s", trip_id)
            continue

    logger.info(
        "Reminder sweep: processed=%d notifications_sent=%d",
        len(trip_ids), notifications_sent,
    )
    return {"processed": len(trip_ids), "notifications_sent": notifications_sent}
