"""
Broadcast helpers for pushing chat events from request handlers.

Services call these after a successful write. Each broadcast is queued
with transaction.on_commit so clients are never told about rows that were
rolled back, and is then sent through the channel layer to a group:

    conversation_<id>  - connections that joined the conversation room
    user_<id>          - every connection of one user
    online_users       - every connection

Channel layer message format (handled by ChatConsumer.chat_event):
    {"type": "chat.event", "event": "newMessage", "data": {...}}

Delivery is fire-and-forget: a failing channel layer is logged at WARNING
and never surfaces to the request that triggered the broadcast.

Usage:
    from chat import realtime

    realtime.broadcast_to_conversation(conversation.id, "newMessage", data)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

from chat.constants import REALTIME_EVENTS, REALTIME_GROUPS

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any

logger = logging.getLogger(__name__)

CHANNEL_MESSAGE_TYPE = "chat.event"


def build_channel_message(
    event: str, data: Any, exclude_channel: str | None = None
) -> dict[str, Any]:
    """Wrap an event for channel_layer.group_send."""
    message = {"type": CHANNEL_MESSAGE_TYPE, "event": event, "data": data}
    if exclude_channel:
        message["exclude_channel"] = exclude_channel
    return message


def _send_now(group: str, event: str, data: Any) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning(f"No channel layer configured; dropped {event} for {group}")
        return
    try:
        async_to_sync(channel_layer.group_send)(group, build_channel_message(event, data))
    except Exception:  # noqa: BLE001 - push is best-effort
        logger.warning(f"Failed to broadcast {event} to {group}", exc_info=True)


def send_to_group(group: str, event: str, data: Any) -> None:
    """Send an event to a group once the current transaction commits."""
    transaction.on_commit(lambda: _send_now(group, event, data))


def broadcast_to_conversation(conversation_id: int, event: str, data: Any) -> None:
    """Send an event to everyone who joined the conversation room."""
    send_to_group(REALTIME_GROUPS.conversation(conversation_id), event, data)


def broadcast_to_users(user_ids: Iterable[int], event: str, data: Any) -> None:
    """Send an event to every connection of each user."""
    for user_id in sorted(set(user_ids)):
        send_to_group(REALTIME_GROUPS.user(user_id), event, data)


def notify_conversation_updated(
    conversation_id: int, user_ids: Iterable[int], deleted: bool = False
) -> None:
    """
    Tell affected users their conversation list is stale.

    Sent on create, rename, membership change, new/deleted message and
    delete; clients refetch their conversation list when they see it.
    """
    broadcast_to_users(
        user_ids,
        REALTIME_EVENTS.CONVERSATION_UPDATED,
        {"conversationId": conversation_id, "deleted": deleted},
    )
