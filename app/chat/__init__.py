"""
Chat app for real-time messaging.

This app handles:
- Conversations (direct and group) and group membership
- Message sending, history and deletion
- Read receipts ("viewing = reading")
- WebSocket presence, typing indicators and event fan-out

Related apps:
    - authentication: User model for participants, JWT verification
    - toolkit: Blob store for message images

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for the WebSocket handler.
    See realtime.py for broadcasting from request handlers.

Usage:
    from chat.services import ConversationService, MessageService

    # Find or create a direct conversation
    result = ConversationService.create(user, is_group=False, participant_ids=[other.id])

    # Send message
    MessageService.send(user, result.data.conversation.id, content="Hello!")
"""
