"""
Test configuration and fixtures for chat tests.

This module provides:
- Named users (alice, bob, carol, dave)
- Conversation fixtures (direct alice/bob, group "Team")
- API client helpers for authenticated requests
- A spy replacing chat.realtime broadcasts
- Presence registry and channel layer cleanup

Usage:
    def test_example(team, client_for, alice):
        response = client_for(alice).get(f"/api/conversations/{team.id}/")
        assert response.status_code == 200
"""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from rest_framework.test import APIClient

from authentication.services import CredentialService
from authentication.tests.factories import UserFactory
from chat.presence import presence_registry
from chat.tests.factories import GroupConversationFactory, direct_conversation_between


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def alice(db):
    return UserFactory(username="alice", email="alice@example.com")


@pytest.fixture
def bob(db):
    return UserFactory(username="bob", email="bob@example.com")


@pytest.fixture
def carol(db):
    return UserFactory(username="carol", email="carol@example.com")


@pytest.fixture
def dave(db):
    """A user outside every conversation fixture."""
    return UserFactory(username="dave", email="dave@example.com")


# =============================================================================
# Conversation Fixtures
# =============================================================================


@pytest.fixture
def direct(alice, bob):
    """Direct conversation between alice (first) and bob."""
    return direct_conversation_between(alice, bob)


@pytest.fixture
def team(alice, bob, carol):
    """Group "Team": admin alice, then bob, then carol."""
    return GroupConversationFactory(name="Team", admin=alice, members=[bob, carol])


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def client_for():
    """
    Build an API client authenticated as the given user.

    Usage:
        response = client_for(alice).get("/api/conversations/")
    """

    def _client_for(user):
        client = APIClient()
        client.credentials(
            HTTP_AUTHORIZATION=f"Bearer {CredentialService.issue_token(user)}"
        )
        return client

    return _client_for


# =============================================================================
# Realtime Fixtures
# =============================================================================


@pytest.fixture
def realtime_spy():
    """
    Replace chat.realtime broadcasts with mocks.

    Yields a namespace with .broadcast (broadcast_to_conversation) and
    .notify (notify_conversation_updated).
    """
    with (
        patch("chat.realtime.broadcast_to_conversation") as broadcast,
        patch("chat.realtime.notify_conversation_updated") as notify,
    ):
        yield SimpleNamespace(broadcast=broadcast, notify=notify)


@pytest.fixture(autouse=True)
def reset_presence():
    """Start and end every test with an empty presence registry."""
    presence_registry.reset()
    yield
    presence_registry.reset()


@pytest.fixture
def channel_layer():
    """The in-memory channel layer, flushed after the test."""
    layer = get_channel_layer()
    yield layer
    async_to_sync(layer.flush)()
