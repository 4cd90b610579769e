"""
WebSocket consumer for the chat application.

One socket per client tab serves every conversation: the client joins and
leaves conversation rooms with frames instead of opening a socket per
conversation.

Consumers:
    ChatConsumer: Presence, room subscription and typing relay

Authentication:
    JWTAuthMiddleware attaches the user to self.scope["user"]. Anonymous
    handshakes are accepted and then closed with code 4001, so browsers
    see the close code instead of a failed handshake.

Channel Groups:
    online_users        - every connection (onlineUsers broadcasts)
    user_<id>           - every connection of one user (conversationUpdated)
    conversation_<id>   - connections that joined the room

Frames (both directions):
    {"event": "<name>", "data": {...}}

Client -> server:
    joinConversation / leaveConversation {conversationId}
    typing / stopTyping {conversationId}

Server -> client:
    onlineUsers, newMessage, messageDeleted, messageRead,
    userStartedTyping, userStoppedTyping, conversationUpdated, error

Any userId in a client payload is ignored; the authenticated user is
always the actor.
"""

from __future__ import annotations

import logging

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from chat.constants import CLOSE_CODES, REALTIME_EVENTS, REALTIME_GROUPS
from chat.middleware import JWT_SUBPROTOCOL
from chat.presence import presence_registry
from chat.realtime import build_channel_message

logger = logging.getLogger(__name__)

ROOM_EVENTS = {
    REALTIME_EVENTS.JOIN_CONVERSATION,
    REALTIME_EVENTS.LEAVE_CONVERSATION,
    REALTIME_EVENTS.TYPING,
    REALTIME_EVENTS.STOP_TYPING,
}


class FrameError(Exception):
    """A client frame that cannot be handled."""


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for realtime chat.

    Handles:
        - Presence (refcounted per user in presence_registry)
        - Joining/leaving conversation rooms
        - Typing indicators, relayed to everyone in the room but the sender
        - Forwarding chat.event messages from the channel layer

    Attributes:
        user: Authenticated user (None until connect succeeds)
        joined_conversations: Conversation ids whose room this socket joined
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user = None
        self.joined_conversations: set[int] = set()

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    async def connect(self):
        user = self.scope.get("user")
        subprotocol = (
            JWT_SUBPROTOCOL if JWT_SUBPROTOCOL in self.scope.get("subprotocols", []) else None
        )

        if user is None or not user.is_authenticated:
            logger.warning("Rejected unauthenticated websocket connection")
            await self.accept(subprotocol=subprotocol)
            await self.close(code=CLOSE_CODES.UNAUTHENTICATED)
            return

        self.user = user
        await self.accept(subprotocol=subprotocol)

        await self.channel_layer.group_add(REALTIME_GROUPS.ONLINE_USERS, self.channel_name)
        await self.channel_layer.group_add(REALTIME_GROUPS.user(user.id), self.channel_name)

        presence_registry.connect(user.id)
        logger.info(f"User {user.id} connected")

        await self._broadcast_online_users()

    async def disconnect(self, close_code):
        if self.user is None:
            return

        user_id = self.user.id

        went_offline = presence_registry.disconnect(user_id)

        # Typing is tracked per user, so only the last connection clears it
        if went_offline:
            for conversation_id in presence_registry.clear_typing_for_user(user_id):
                await self._relay_to_room(
                    conversation_id, REALTIME_EVENTS.USER_STOPPED_TYPING
                )

        for conversation_id in self.joined_conversations:
            await self.channel_layer.group_discard(
                REALTIME_GROUPS.conversation(conversation_id), self.channel_name
            )
        self.joined_conversations.clear()
        await self.channel_layer.group_discard(REALTIME_GROUPS.user(user_id), self.channel_name)
        await self.channel_layer.group_discard(
            REALTIME_GROUPS.ONLINE_USERS, self.channel_name
        )

        logger.info(f"User {user_id} disconnected (code={close_code})")

        if went_offline:
            await self._broadcast_online_users()

    # =========================================================================
    # Client frames
    # =========================================================================

    async def receive_json(self, content, **kwargs):
        """
        Dispatch a client frame.

        Malformed frames and unknown events get an error frame back; the
        connection stays open.
        """
        try:
            event, conversation_id = self._parse_frame(content)
        except FrameError as exc:
            await self._send_error(str(exc))
            return

        if event == REALTIME_EVENTS.JOIN_CONVERSATION:
            await self.channel_layer.group_add(
                REALTIME_GROUPS.conversation(conversation_id), self.channel_name
            )
            self.joined_conversations.add(conversation_id)
        elif event == REALTIME_EVENTS.LEAVE_CONVERSATION:
            await self.channel_layer.group_discard(
                REALTIME_GROUPS.conversation(conversation_id), self.channel_name
            )
            self.joined_conversations.discard(conversation_id)
        elif event == REALTIME_EVENTS.TYPING:
            presence_registry.start_typing(conversation_id, self.user.id)
            await self._relay_to_room(
                conversation_id, REALTIME_EVENTS.USER_STARTED_TYPING, exclude_self=True
            )
        elif event == REALTIME_EVENTS.STOP_TYPING:
            presence_registry.stop_typing(conversation_id, self.user.id)
            await self._relay_to_room(
                conversation_id, REALTIME_EVENTS.USER_STOPPED_TYPING, exclude_self=True
            )

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        # Non-JSON text would otherwise raise inside decode_json and drop the socket
        if text_data is None:
            await self._send_error("Frames must be JSON text")
            return
        try:
            content = await self.decode_json(text_data)
        except ValueError:
            await self._send_error("Frames must be JSON text")
            return
        await self.receive_json(content, **kwargs)

    @staticmethod
    def _parse_frame(content) -> tuple[str, int]:
        if not isinstance(content, dict):
            raise FrameError("Frame must be an object")

        event = content.get("event")
        if not isinstance(event, str):
            raise FrameError("Frame is missing an event name")
        if event not in ROOM_EVENTS:
            raise FrameError(f"Unknown event: {event}")

        data = content.get("data")
        if not isinstance(data, dict):
            raise FrameError(f"{event} requires a data object")

        conversation_id = data.get("conversationId")
        if isinstance(conversation_id, bool):
            raise FrameError(f"{event} requires a numeric conversationId")
        try:
            conversation_id = int(conversation_id)
        except (TypeError, ValueError) as exc:
            raise FrameError(f"{event} requires a numeric conversationId") from exc

        return event, conversation_id

    # =========================================================================
    # Channel layer handlers
    # =========================================================================

    async def chat_event(self, message):
        """Forward a chat.event from the channel layer to the client."""
        if message.get("exclude_channel") == self.channel_name:
            return
        await self.send_json({"event": message["event"], "data": message["data"]})

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _send_error(self, error: str) -> None:
        await self.send_json({"event": REALTIME_EVENTS.ERROR, "data": {"message": error}})

    async def _relay_to_room(
        self, conversation_id: int, event: str, exclude_self: bool = False
    ) -> None:
        await self.channel_layer.group_send(
            REALTIME_GROUPS.conversation(conversation_id),
            build_channel_message(
                event,
                {"conversationId": conversation_id, "userId": self.user.id},
                exclude_channel=self.channel_name if exclude_self else None,
            ),
        )

    async def _broadcast_online_users(self) -> None:
        await self.channel_layer.group_send(
            REALTIME_GROUPS.ONLINE_USERS,
            build_channel_message(
                REALTIME_EVENTS.ONLINE_USERS, presence_registry.online_user_ids()
            ),
        )
