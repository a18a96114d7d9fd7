"""Celery tasks for trip-related background processing."""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def check_upcoming_trips_task():
    """
    Every 5 minutes (CELERY_BEAT_SCHEDULE["check-scheduled-trips"]):
    emit due pre-departure reminders for scheduled trips.
    """
    from services.reminders import check_upcoming_trips

    summary = check_upcoming_trips()
    logger.info(
        "Reminder sweep finished: %d trip(s) processed, %d notification(s) sent",
        summary["processed"], summary["notifications_sent"],
    )
    return summary
