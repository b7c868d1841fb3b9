"""Per-user push notifications over the channel layer."""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


def user_group(user_id) -> str:
    """Channel group every socket of one user joins."""
    return f"user_{user_id}"


def _send(user_id, event: dict) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning("No channel layer available for notifications")
        return

    try:
        async_to_sync(channel_layer.group_send)(user_group(user_id), event)
    except Exception as e:
        logger.warning(f"Failed to send {event['type']} to user {user_id}: {e}")


def notify_user(user_id, message: str) -> None:
    """Push a short toast message to the user's open clients."""
    _send(user_id, {"type": "user.notification", "message": message})


def notify_job(user_id, kind: str, object_id, status: str, message: str = "") -> None:
    """Push a background job status change (loop analysis, mixdown)."""
    _send(user_id, {
        "type": "job.status",
        "kind": kind,
        "id": str(object_id),
        "status": status,
        "message": message,
    })
