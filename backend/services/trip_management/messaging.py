"""Chat messages between a trip's client and its assigned partner."""

import logging
from typing import List, Optional

from django.db import transaction
from django.db.models import Q

from common.exceptions import DomainValidationError
from trips.models import Message
from .exceptions import NotTripParticipantError
from .lifecycle import get_trip, _notify

logger = logging.getLogger(__name__)


def _require_participant(trip, user):
    if not trip.is_participant(user):
        raise NotTripParticipantError("Unauthorized: not your trip")


@transaction.atomic
def send_message(trip_id, sender, content: str) -> Message:
    content = (content or "").strip()
    if not content:
        raise DomainValidationError("Message content cannot be empty")

    trip = get_trip(trip_id)
    _require_participant(trip, sender)

    message = Message.objects.create(trip=trip, sender=sender, content=content)

    recipient_id = trip.partner_id if sender.pk == trip.client_id else trip.client_id
    if recipient_id:
        _notify(
            recipient_id,
            "New Message",
            f"{sender.full_name or sender.username}: {content[:100]}",
            trip.pk,
            type="message",
        )
    return message


def list_trip_messages(trip_id, user, limit: Optional[int] = None) -> List[Message]:
    trip = get_trip(trip_id)
    _require_participant(trip, user)
    qs = Message.objects.filter(trip=trip).select_related("sender")
    if limit:
        qs = qs[:limit]
    return list(qs)


def mark_messages_read(trip_id, user) -> int:
    """Mark messages sent to `user` on this trip as read; returns how many."""
    trip = get_trip(trip_id)
    _require_participant(trip, user)
    return (
        Message.objects.filter(trip=trip, read=False)
        .exclude(sender=user)
        .update(read=True)
    )


def count_unread_messages(user) -> int:
    """Unread messages addressed to `user` across all of their trips."""
    return (
        Message.objects.filter(Q(trip__client=user) | Q(trip__partner=user), read=False)
        .exclude(sender=user)
        .count()
    )
