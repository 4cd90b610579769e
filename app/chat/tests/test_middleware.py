"""
Tests for WebSocket JWT authentication middleware.

Features tested:
- Token extraction from the query string and the subprotocol header
- Valid, invalid, unknown-user and inactive-user tokens
- The handshake is never rejected here; the scope just gets AnonymousUser

Note:
    get_user_for_token runs through database_sync_to_async, which closes
    "old" connections; these tests use transactional DB access.
"""

import pytest
from asgiref.sync import async_to_sync

from authentication.services import CredentialService
from authentication.tests.factories import UserFactory
from chat.middleware import (
    JWTAuthMiddleware,
    get_token_from_query,
    get_token_from_subprotocol,
)


class ScopeRecorder:
    """Inner ASGI app that remembers the scope it was called with."""

    def __init__(self):
        self.scope = None

    async def __call__(self, scope, receive, send):
        self.scope = scope


def run_middleware(scope):
    inner = ScopeRecorder()

    async def noop_receive():
        return {}

    async def noop_send(message):
        return None

    async_to_sync(JWTAuthMiddleware(inner))(scope, noop_receive, noop_send)
    return inner.scope


# =============================================================================
# Token extraction
# =============================================================================


class TestTokenExtraction:
    def test_token_from_query(self):
        scope = {"query_string": b"token=abc.def&x=1"}

        assert get_token_from_query(scope) == "abc.def"

    def test_no_query_token(self):
        assert get_token_from_query({"query_string": b""}) is None
        assert get_token_from_query({}) is None

    def test_token_from_subprotocol(self):
        assert get_token_from_subprotocol({"subprotocols": ["jwt", "abc.def"]}) == "abc.def"

    @pytest.mark.parametrize("subprotocols", [[], ["jwt"], ["chat", "abc.def"]])
    def test_subprotocol_without_token(self, subprotocols):
        assert get_token_from_subprotocol({"subprotocols": subprotocols}) is None


# =============================================================================
# JWTAuthMiddleware
# =============================================================================


@pytest.mark.django_db(transaction=True)
class TestJWTAuthMiddleware:
    def test_valid_query_token_sets_user(self):
        user = UserFactory()
        token = CredentialService.issue_token(user)

        scope = run_middleware({"type": "websocket", "query_string": f"token={token}".encode()})

        assert scope["user"].pk == user.pk

    def test_valid_subprotocol_token_sets_user(self):
        user = UserFactory()
        token = CredentialService.issue_token(user)

        scope = run_middleware(
            {"type": "websocket", "query_string": b"", "subprotocols": ["jwt", token]}
        )

        assert scope["user"].pk == user.pk

    def test_missing_token_is_anonymous(self):
        scope = run_middleware({"type": "websocket", "query_string": b""})

        assert scope["user"].is_authenticated is False

    def test_garbage_token_is_anonymous(self):
        scope = run_middleware({"type": "websocket", "query_string": b"token=garbage"})

        assert scope["user"].is_authenticated is False

    def test_inactive_user_is_anonymous(self):
        """
        Deactivated accounts cannot open a socket with an old token.

        Why it matters: Tokens live for 30 days; deactivation must win.
        """
        user = UserFactory()
        token = CredentialService.issue_token(user)
        user.is_active = False
        user.save(update_fields=["is_active"])

        scope = run_middleware({"type": "websocket", "query_string": f"token={token}".encode()})

        assert scope["user"].is_authenticated is False

    def test_deleted_user_is_anonymous(self):
        user = UserFactory()
        token = CredentialService.issue_token(user)
        user.delete()

        scope = run_middleware({"type": "websocket", "query_string": f"token={token}".encode()})

        assert scope["user"].is_authenticated is False

    def test_original_scope_is_not_mutated(self):
        scope = {"type": "websocket", "query_string": b""}

        run_middleware(scope)

        assert "user" not in scope
