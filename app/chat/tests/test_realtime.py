"""
Tests for chat.realtime broadcast helpers.

Features tested:
- Broadcasts wait for the transaction to commit
- Group names and channel message shape
- Channel layer failures are logged, never raised
- Delivery through the in-memory channel layer
"""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from asgiref.sync import async_to_sync

from chat import realtime


@pytest.fixture
def layer():
    """A mock channel layer with an async group_send."""
    mock_layer = MagicMock()
    mock_layer.group_send = AsyncMock()
    with patch("chat.realtime.get_channel_layer", return_value=mock_layer):
        yield mock_layer


class TestBuildChannelMessage:
    def test_shape(self):
        assert realtime.build_channel_message("newMessage", {"id": 1}) == {
            "type": "chat.event",
            "event": "newMessage",
            "data": {"id": 1},
        }

    def test_exclude_channel_is_included_when_set(self):
        message = realtime.build_channel_message("typing", {}, exclude_channel="abc")

        assert message["exclude_channel"] == "abc"


class TestBroadcasts:
    """Group routing and on_commit scheduling."""

    def test_nothing_is_sent_before_commit(self, db, layer, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            realtime.broadcast_to_conversation(5, "newMessage", {"id": 1})

        assert len(callbacks) == 1
        layer.group_send.assert_not_called()

    def test_conversation_broadcast_targets_room(
        self, db, layer, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            realtime.broadcast_to_conversation(5, "newMessage", {"id": 1})

        layer.group_send.assert_awaited_once_with(
            "conversation_5",
            {"type": "chat.event", "event": "newMessage", "data": {"id": 1}},
        )

    def test_notify_goes_to_each_user_once(self, db, layer, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            realtime.notify_conversation_updated(9, [3, 1, 3], deleted=True)

        groups = [call.args[0] for call in layer.group_send.await_args_list]
        assert groups == ["user_1", "user_3"]
        assert layer.group_send.await_args.args[1]["data"] == {
            "conversationId": 9,
            "deleted": True,
        }

    def test_layer_failure_is_logged_not_raised(
        self, db, layer, caplog, django_capture_on_commit_callbacks
    ):
        """
        A broken channel layer never fails the request that triggered it.

        Why it matters: The message is already persisted; push is best-effort.
        """
        layer.group_send.side_effect = ConnectionError("redis down")

        with caplog.at_level(logging.WARNING, logger="chat.realtime"):
            with django_capture_on_commit_callbacks(execute=True):
                realtime.broadcast_to_conversation(5, "newMessage", {"id": 1})

        assert "Failed to broadcast newMessage to conversation_5" in caplog.text


class TestInMemoryDelivery:
    def test_group_member_receives_event(
        self, db, channel_layer, django_capture_on_commit_callbacks
    ):
        channel = async_to_sync(channel_layer.new_channel)()
        async_to_sync(channel_layer.group_add)("user_4", channel)

        with django_capture_on_commit_callbacks(execute=True):
            realtime.broadcast_to_users([4], "onlineUsers", [4])

        received = async_to_sync(channel_layer.receive)(channel)
        assert received == {"type": "chat.event", "event": "onlineUsers", "data": [4]}
