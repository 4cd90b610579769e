"""
Constants for the chat module.

This module centralizes:
- Message limits
- Realtime channel group names, event names and close codes
- Client-side typing timing shared with sync_client

Import example:
    from chat.constants import MESSAGE_CONFIG, REALTIME_EVENTS
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters
    IMAGE_UPLOAD_FOLDER: Final[str] = "messages"
    GROUP_NAME_MAX_LENGTH: Final[int] = 100


# =============================================================================
# Realtime Channel Configuration
# =============================================================================


class REALTIME_GROUPS:
    """Channel layer group names."""

    ONLINE_USERS: Final[str] = "online_users"

    @staticmethod
    def conversation(conversation_id) -> str:
        return f"conversation_{conversation_id}"

    @staticmethod
    def user(user_id) -> str:
        return f"user_{user_id}"


class REALTIME_EVENTS:
    """Event names on the wire ({"event": ..., "data": ...})."""

    # client -> server
    JOIN_CONVERSATION: Final[str] = "joinConversation"
    LEAVE_CONVERSATION: Final[str] = "leaveConversation"
    TYPING: Final[str] = "typing"
    STOP_TYPING: Final[str] = "stopTyping"

    # server -> client
    ONLINE_USERS: Final[str] = "onlineUsers"
    NEW_MESSAGE: Final[str] = "newMessage"
    MESSAGE_DELETED: Final[str] = "messageDeleted"
    MESSAGE_READ: Final[str] = "messageRead"
    USER_STARTED_TYPING: Final[str] = "userStartedTyping"
    USER_STOPPED_TYPING: Final[str] = "userStoppedTyping"
    CONVERSATION_UPDATED: Final[str] = "conversationUpdated"
    ERROR: Final[str] = "error"


class CLOSE_CODES:
    """Websocket close codes."""

    UNAUTHENTICATED: Final[int] = 4001


class TYPING_CONFIG:
    """Typing indicator timing (seconds)."""

    # Receiver drops a typing entry with no stop after this long
    EXPIRY_SECONDS: Final[float] = 2.0
    # Sender emits stopTyping this long after the last keystroke
    IDLE_STOP_SECONDS: Final[float] = 2.0
