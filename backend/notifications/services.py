"""
In-app notifications.

create_notification() persists the row and, once the surrounding transaction
commits, pushes a copy to the user's WebSocket group.
"""

import logging
from typing import List, Optional

from django.db import transaction

from common.exceptions import NotFoundError, UnauthorizedError, DomainValidationError
from notifications.models import Notification

logger = logging.getLogger(__name__)


def create_notification(
    user_id,
    type: str,
    title: str,
    message: str,
    related_id=None,
) -> Notification:
    if type not in dict(Notification.TYPE_CHOICES):
        raise DomainValidationError(f"Unknown notification type: {type}")

    notification = Notification.objects.create(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        related_id="" if related_id is None else str(related_id),
    )

    from realtime.notifications import push_user_event

    payload = {
        "id": notification.id,
        "notification_type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "related_id": notification.related_id or None,
        "created_at": notification.created_at.isoformat(),
    }
    transaction.on_commit(lambda: push_user_event(user_id, "notification", payload))
    return notification


def get_user_notifications(user, include_read: bool = True, limit: Optional[int] = 50) -> List[Notification]:
    qs = Notification.objects.filter(user=user)
    if not include_read:
        qs = qs.filter(read=False)
    if limit:
        qs = qs[:limit]
    return list(qs)


def count_unread(user) -> int:
    return Notification.objects.filter(user=user, read=False).count()


def _get_owned(notification_id, user) -> Notification:
    try:
        notification = Notification.objects.get(pk=notification_id)
    except Notification.DoesNotExist:
        raise NotFoundError("Notification not found", error_code="notification_not_found")
    if notification.user_id != user.pk:
        raise UnauthorizedError("This notification belongs to another user")
    return notification


def mark_read(notification_id, user) -> Notification:
    notification = _get_owned(notification_id, user)
    if not notification.read:
        notification.read = True
        notification.save(update_fields=["read"])
    return notification


def mark_all_read(user) -> int:
    """Returns the number of notifications that were unread."""
    return Notification.objects.filter(user=user, read=False).update(read=True)


def delete_notification(notification_id, user) -> None:
    notification = _get_owned(notification_id, user)
    notification.delete()
