"""
Chat application configuration.

This app provides the chat system with:
- Direct (1:1) and group conversations
- Messages with image attachments and read receipts
- Realtime presence and typing over websockets
"""

import atexit

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"

    def ready(self):
        from chat.presence import presence_registry

        atexit.register(presence_registry.reset)
