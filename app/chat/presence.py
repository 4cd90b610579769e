"""
In-process presence and typing registry.

PresenceRegistry holds the ephemeral realtime state of this server
process:
- Online users, as a connection count per user (a user with two open
  tabs stays online until both close)
- Typing users, per conversation

Design Decisions:
    - Nothing is persisted; a restart starts from empty sets and clients
      re-announce themselves on reconnect
    - State is per process. Running several ASGI workers needs a shared
      store (Redis) instead; that is a known scaling limit
    - Mutations return what changed so the consumer can decide which
      events to broadcast

Lifecycle:
    - presence_registry is created empty at import
    - ChatConfig.ready() registers presence_registry.reset with atexit
    - Tests call reset() between cases

Usage:
    from chat.presence import presence_registry

    came_online = presence_registry.connect(user.id)
    presence_registry.online_user_ids()  # [3, 7]
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict

logger = logging.getLogger(__name__)


class PresenceRegistry:
    """Thread-safe online/typing state for one process."""

    def __init__(self):
        self._lock = threading.Lock()
        self._connections: dict[int, int] = {}
        self._typing: dict[int, set[int]] = defaultdict(set)

    # =========================================================================
    # Online users
    # =========================================================================

    def connect(self, user_id: int) -> bool:
        """
        Register a new connection for the user.

        Returns:
            True if the user was offline before this connection
        """
        with self._lock:
            count = self._connections.get(user_id, 0)
            self._connections[user_id] = count + 1
            return count == 0

    def disconnect(self, user_id: int) -> bool:
        """
        Drop one connection for the user.

        Returns:
            True if that was the user's last connection (now offline)
        """
        with self._lock:
            count = self._connections.get(user_id, 0)
            if count <= 1:
                self._connections.pop(user_id, None)
                return count == 1
            self._connections[user_id] = count - 1
            return False

    def is_online(self, user_id: int) -> bool:
        with self._lock:
            return user_id in self._connections

    def online_user_ids(self) -> list[int]:
        """Currently online user ids, sorted for stable payloads."""
        with self._lock:
            return sorted(self._connections)

    # =========================================================================
    # Typing
    # =========================================================================

    def start_typing(self, conversation_id: int, user_id: int) -> bool:
        """Mark user as typing. Returns True if they were not already."""
        with self._lock:
            typing = self._typing[conversation_id]
            if user_id in typing:
                return False
            typing.add(user_id)
            return True

    def stop_typing(self, conversation_id: int, user_id: int) -> bool:
        """Clear user's typing flag. Returns True if it was set."""
        with self._lock:
            typing = self._typing.get(conversation_id)
            if not typing or user_id not in typing:
                return False
            typing.discard(user_id)
            if not typing:
                del self._typing[conversation_id]
            return True

    def clear_typing_for_user(self, user_id: int) -> list[int]:
        """
        Remove the user from every typing set.

        Returns:
            Conversation ids the user was typing in
        """
        with self._lock:
            cleared = [cid for cid, users in self._typing.items() if user_id in users]
            for conversation_id in cleared:
                self._typing[conversation_id].discard(user_id)
                if not self._typing[conversation_id]:
                    del self._typing[conversation_id]
            return cleared

    def typing_user_ids(self, conversation_id: int) -> list[int]:
        with self._lock:
            return sorted(self._typing.get(conversation_id, ()))

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def reset(self) -> None:
        """Drop all state (process shutdown, tests)."""
        with self._lock:
            online = len(self._connections)
            self._connections.clear()
            self._typing.clear()
        if online:
            logger.info(f"Presence registry cleared ({online} users were online)")


presence_registry = PresenceRegistry()
