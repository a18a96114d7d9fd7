"""
Helpers for pushing server-side events to connected WebSocket clients.

Every authenticated socket joins its personal group user_<id>; the event
"type" names the consumer handler that forwards it to the client.
"""

import logging
from typing import Dict, Any

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


def user_group(user_id) -> str:
    return f"user_{user_id}"


def push_user_event(user_id, event_type: str, payload: Dict[str, Any] = None) -> bool:
    """
    Send an event to one user's personal group.

    Delivery is best-effort: the caller has already persisted what matters,
    so a channel-layer failure is logged and reported as False.

    Args:
        user_id: Target user's ID
        event_type: Handler name in the consumer (e.g. "notification")
        payload: Event data forwarded to the client

    Returns:
        True if handed to the channel layer, False otherwise
    """
    if not user_id:
        return False

    channel_layer = get_channel_layer()
    if channel_layer is None:
        return False

    message = {"type": event_type, **(payload or {})}
    try:
        async_to_sync(channel_layer.group_send)(user_group(user_id), message)
    except Exception:
        logger.exception("Failed to push %s to user %s", event_type, user_id)
        return False

    logger.debug("WS -> user_%s: %s", user_id, message)
    return True
