"""
Realtime connection to ws/chat/.

RealtimeConnection opens the websocket with the access token, sends room
and typing frames, and feeds every received frame to a ChatSyncStore.
Store handlers may call the REST API (blocking httpx), so they run in the
default executor, one frame at a time.

Usage:
    async with RealtimeConnection(ws_url, api.token, store) as conn:
        await conn.join_conversation(conversation_id)
        notifier = conn.typing_notifier(conversation_id)
        await conn.listen()
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING
from urllib.parse import urlencode

import websockets

from chat.constants import REALTIME_EVENTS
from sync_client.typing_notifier import TypingNotifier

if TYPE_CHECKING:
    from sync_client.store import ChatSyncStore

logger = logging.getLogger(__name__)


class RealtimeConnection:
    """
    Client end of the chat websocket.

    Args:
        url: Websocket URL, e.g. ws://localhost:8000/ws/chat/
        token: JWT access token (sent as ?token=)
        store: Receives every server event
        connect: Coroutine factory opening the socket (websockets.connect)
    """

    def __init__(self, url: str, token: str, store: ChatSyncStore, connect=websockets.connect):
        separator = "&" if "?" in url else "?"
        self.url = f"{url}{separator}{urlencode({'token': token})}"
        self.store = store
        self._connect = connect
        self._ws = None
        self._pending_sends: set[asyncio.Task] = set()

    async def open(self) -> None:
        self._ws = await self._connect(self.url)
        logger.info("Realtime connection opened")

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
            logger.info("Realtime connection closed")

    async def __aenter__(self) -> RealtimeConnection:
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # =========================================================================
    # Outgoing
    # =========================================================================

    async def send_event(self, event: str, conversation_id: int) -> None:
        frame = {"event": event, "data": {"conversationId": conversation_id}}
        await self._ws.send(json.dumps(frame))

    async def join_conversation(self, conversation_id: int) -> None:
        await self.send_event(REALTIME_EVENTS.JOIN_CONVERSATION, conversation_id)

    async def leave_conversation(self, conversation_id: int) -> None:
        await self.send_event(REALTIME_EVENTS.LEAVE_CONVERSATION, conversation_id)

    async def typing(self, conversation_id: int) -> None:
        await self.send_event(REALTIME_EVENTS.TYPING, conversation_id)

    async def stop_typing(self, conversation_id: int) -> None:
        await self.send_event(REALTIME_EVENTS.STOP_TYPING, conversation_id)

    def typing_notifier(self, conversation_id: int) -> TypingNotifier:
        """A TypingNotifier that sends through this connection on the running loop."""
        loop = asyncio.get_running_loop()

        def emit(event: str, target_id: int) -> None:
            task = loop.create_task(self.send_event(event, target_id))
            self._pending_sends.add(task)
            task.add_done_callback(self._on_send_done)

        return TypingNotifier(conversation_id, emit=emit, scheduler=loop)

    def _on_send_done(self, task: asyncio.Task) -> None:
        self._pending_sends.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Failed to send typing frame: {error}")

    # =========================================================================
    # Incoming
    # =========================================================================

    async def listen(self) -> None:
        """Dispatch frames until the server closes the socket."""
        loop = asyncio.get_running_loop()
        async for raw in self._ws:
            parsed = self.parse_frame(raw)
            if parsed is None:
                continue
            event, data = parsed
            if event == REALTIME_EVENTS.ERROR:
                logger.warning(f"Server rejected a frame: {data}")
                continue
            await loop.run_in_executor(None, self.store.handle_event, event, data)

    @staticmethod
    def parse_frame(raw) -> tuple[str, object] | None:
        try:
            frame = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Dropped non-JSON frame from server")
            return None
        if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
            logger.warning("Dropped frame without an event name")
            return None
        return frame["event"], frame.get("data")
