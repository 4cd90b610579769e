"""
Python client for the chat backend.

This package mirrors what a chat frontend keeps in sync with the server:
- ChatApiClient: REST calls (httpx), raising ChatApiError on non-2xx
- ChatSyncStore: Cached conversation list, open conversation, presence
  and typing state, updated from realtime events
- TypingNotifier: Emits typing/stopTyping for one conversation
- RealtimeConnection: The ws/chat/ socket (websockets), feeding the store

Usage:
    api = ChatApiClient("http://localhost:8000")
    api.login("alice@example.com", "Str0ng-Pass!23")

    store = ChatSyncStore(api, user_id=api.user["id"])
    store.refresh_conversations()

    async with RealtimeConnection("ws://localhost:8000/ws/chat/", api.token, store) as conn:
        await conn.join_conversation(store.conversations[0]["id"])
        await conn.listen()

The package does not import Django; event names and typing timings come
from chat.constants, which is plain Python.
"""

from sync_client.api import ChatApiClient, ChatApiError
from sync_client.connection import RealtimeConnection
from sync_client.store import ChatSyncStore
from sync_client.typing_notifier import TypingNotifier

__all__ = [
    "ChatApiClient",
    "ChatApiError",
    "ChatSyncStore",
    "RealtimeConnection",
    "TypingNotifier",
]
