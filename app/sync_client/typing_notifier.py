"""
Sender side of typing indicators.

TypingNotifier turns keystrokes in one conversation into typing/stopTyping
events:
- typing on the first keystroke of a burst
- stopTyping once keystrokes pause for IDLE_STOP_SECONDS
- stopTyping right away when the message is sent

The scheduler only needs call_later(delay, callback) returning a handle
with cancel(); an asyncio event loop fits, tests pass a manual one.

Usage:
    notifier = TypingNotifier(conversation_id, emit=send_event, scheduler=loop)
    notifier.keystroke()
    notifier.message_sent()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from chat.constants import REALTIME_EVENTS, TYPING_CONFIG

if TYPE_CHECKING:
    from collections.abc import Callable


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class TypingNotifier:
    """Typing state machine for one conversation."""

    def __init__(
        self,
        conversation_id: int,
        emit: Callable[[str, int], None],
        scheduler: Scheduler,
        idle_seconds: float = TYPING_CONFIG.IDLE_STOP_SECONDS,
    ):
        self.conversation_id = conversation_id
        self.emit = emit
        self.scheduler = scheduler
        self.idle_seconds = idle_seconds
        self.is_typing = False
        self._pending_stop: Cancellable | None = None

    def keystroke(self) -> None:
        if not self.is_typing:
            self.is_typing = True
            self.emit(REALTIME_EVENTS.TYPING, self.conversation_id)

        self._cancel_pending()
        self._pending_stop = self.scheduler.call_later(self.idle_seconds, self._on_idle)

    def message_sent(self) -> None:
        self.stop()

    def stop(self) -> None:
        self._cancel_pending()
        if self.is_typing:
            self.is_typing = False
            self.emit(REALTIME_EVENTS.STOP_TYPING, self.conversation_id)

    def _on_idle(self) -> None:
        self._pending_stop = None
        self.stop()

    def _cancel_pending(self) -> None:
        if self._pending_stop is not None:
            self._pending_stop.cancel()
            self._pending_stop = None
