"""
Client-side cache of chat state, kept current by realtime events.

ChatSyncStore holds what a chat screen shows:
- The conversation list, plus a conversations_stale flag
- The open conversation and its messages
- The set of online users
- Who is typing, per conversation

Event Handling:
    newMessage           - from another user in the open conversation:
                           refetch (marks it read); own echo: append
                           unless already shown; always marks the list stale
    messageRead          - another user read the open conversation: refetch
    messageDeleted       - drop locally; fix up a cached preview
    conversationUpdated  - list stale; close the open conversation if deleted
    onlineUsers          - replace the online set
    userStartedTyping    - add a typing entry (expires after 2 seconds)
    userStoppedTyping    - remove the typing entry

A stale list is not refetched automatically; callers decide when to call
refresh_conversations().

Usage:
    store = ChatSyncStore(api, user_id=me["id"])
    store.refresh_conversations()
    store.open_conversation(conversation_id)
    store.handle_event("newMessage", message)
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from chat.constants import REALTIME_EVENTS, TYPING_CONFIG

if TYPE_CHECKING:
    from collections.abc import Callable

    from sync_client.api import ChatApiClient

logger = logging.getLogger(__name__)

PREVIEW_FIELDS = ("id", "sender", "content", "image", "read_by", "created_at")


class ChatSyncStore:
    """
    Local view of conversations, messages, presence and typing.

    Args:
        api: REST client used for refetches
        user_id: The signed-in user (their own read/typing events are ignored)
        clock: Monotonic seconds, injectable for tests
        typing_expiry: Seconds a typing entry lives without a stop
    """

    def __init__(
        self,
        api: ChatApiClient,
        user_id: int,
        clock: Callable[[], float] = time.monotonic,
        typing_expiry: float = TYPING_CONFIG.EXPIRY_SECONDS,
    ):
        self.api = api
        self.user_id = user_id
        self.clock = clock
        self.typing_expiry = typing_expiry

        self.conversations: list[dict] = []
        self.conversations_stale = True
        self.open_conversation_id: int | None = None
        self.messages: list[dict] = []
        self.online_user_ids: set[int] = set()
        self._typing: dict[int, dict[int, float]] = {}

        self._handlers = {
            REALTIME_EVENTS.NEW_MESSAGE: self._on_new_message,
            REALTIME_EVENTS.MESSAGE_READ: self._on_message_read,
            REALTIME_EVENTS.MESSAGE_DELETED: self._on_message_deleted,
            REALTIME_EVENTS.CONVERSATION_UPDATED: self._on_conversation_updated,
            REALTIME_EVENTS.ONLINE_USERS: self._on_online_users,
            REALTIME_EVENTS.USER_STARTED_TYPING: self._on_user_started_typing,
            REALTIME_EVENTS.USER_STOPPED_TYPING: self._on_user_stopped_typing,
        }

    # =========================================================================
    # Fetching
    # =========================================================================

    def refresh_conversations(self) -> list[dict]:
        self.conversations = self.api.list_conversations()
        self.conversations_stale = False
        return self.conversations

    def open_conversation(self, conversation_id: int) -> list[dict]:
        """Load a conversation's messages (which marks them read server-side)."""
        self.open_conversation_id = conversation_id
        self.messages = self.api.list_messages(conversation_id)
        return self.messages

    def close_conversation(self) -> None:
        self.open_conversation_id = None
        self.messages = []

    def refetch_messages(self) -> None:
        if self.open_conversation_id is not None:
            self.messages = self.api.list_messages(self.open_conversation_id)

    # =========================================================================
    # Queries
    # =========================================================================

    def is_online(self, user_id: int) -> bool:
        return user_id in self.online_user_ids

    def typing_user_ids(self, conversation_id: int) -> list[int]:
        """Users typing in the conversation, dropping expired entries."""
        entries = self._typing.get(conversation_id)
        if not entries:
            return []

        now = self.clock()
        expired = [
            user_id
            for user_id, started_at in entries.items()
            if now - started_at >= self.typing_expiry
        ]
        for user_id in expired:
            del entries[user_id]
        if not entries:
            del self._typing[conversation_id]
        return sorted(entries)

    # =========================================================================
    # Events
    # =========================================================================

    def handle_event(self, event: str, data) -> None:
        """Apply one server event. Unknown events are logged and ignored."""
        handler = self._handlers.get(event)
        if handler is None:
            logger.debug(f"Ignoring event {event}")
            return
        handler(data)

    def _on_new_message(self, message: dict) -> None:
        self.conversations_stale = True

        if message.get("conversation_id") != self.open_conversation_id:
            return

        sender_id = (message.get("sender") or {}).get("id")
        if sender_id != self.user_id:
            # Listing is what marks the message read for this viewer
            self.refetch_messages()
        elif any(existing["id"] == message["id"] for existing in self.messages):
            self.refetch_messages()
        else:
            self.messages.append(message)

    def _on_message_read(self, data: dict) -> None:
        if (
            data.get("conversationId") == self.open_conversation_id
            and data.get("userId") != self.user_id
        ):
            self.refetch_messages()

    def _on_message_deleted(self, data: dict) -> None:
        message_id = data.get("messageId")
        conversation_id = data.get("conversationId")

        if conversation_id == self.open_conversation_id:
            self.messages = [m for m in self.messages if m["id"] != message_id]

        for conversation in self.conversations:
            if conversation["id"] != conversation_id:
                continue
            latest = conversation.get("latest_message")
            if not latest or latest.get("id") != message_id:
                continue
            if conversation_id == self.open_conversation_id:
                conversation["latest_message"] = self._preview(self.messages)
            else:
                # Remaining messages are not loaded here
                self.conversations_stale = True

    def _on_conversation_updated(self, data: dict) -> None:
        self.conversations_stale = True
        if data.get("deleted") and data.get("conversationId") == self.open_conversation_id:
            self.close_conversation()

    def _on_online_users(self, user_ids: list[int]) -> None:
        self.online_user_ids = set(user_ids)

    def _on_user_started_typing(self, data: dict) -> None:
        user_id = data.get("userId")
        if user_id == self.user_id:
            return
        self._typing.setdefault(data.get("conversationId"), {})[user_id] = self.clock()

    def _on_user_stopped_typing(self, data: dict) -> None:
        conversation_id = data.get("conversationId")
        entries = self._typing.get(conversation_id)
        if not entries:
            return
        entries.pop(data.get("userId"), None)
        if not entries:
            del self._typing[conversation_id]

    @staticmethod
    def _preview(messages: list[dict]) -> dict | None:
        if not messages:
            return None
        latest = messages[-1]
        return {field: latest.get(field) for field in PREVIEW_FIELDS}
