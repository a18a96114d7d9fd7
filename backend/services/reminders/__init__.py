"""
Reminder scheduler - periodic pre-departure reminders for scheduled trips.
"""

from .scheduler import check_upcoming_trips, due_threshold, send_trip_reminder, REMINDER_STATUSES

__all__ = [
    "check_upcoming_trips",
    "due_threshold",
    "send_trip_reminder",
    "REMINDER_STATUSES",
]
