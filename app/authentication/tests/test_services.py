"""
Tests for authentication services.

This module tests:
- CredentialService: hashing, token issue/verify
- AuthService: register, login, profile/avatar updates, user search

Testing Philosophy:
    Tests focus on observable behavior:
    - ServiceResult success/failure states and error codes
    - Database state changes
    - Tokens resolving back to the right user
"""

from unittest.mock import MagicMock

import pytest
from freezegun import freeze_time

from authentication.models import User
from authentication.services import AuthService, CredentialService, InvalidTokenError
from authentication.tests.factories import DEFAULT_PASSWORD, UserFactory
from core.exceptions import ExternalServiceError


# =============================================================================
# TestCredentialService
# =============================================================================


class TestCredentialService:
    """Tests for password hashing and JWT handling."""

    def test_hash_password_round_trips_through_verify(self):
        """
        A hashed password verifies, a different one does not.

        Why it matters: Login depends on this pair behaving consistently.
        """
        credential = CredentialService.hash_password("Str0ng-Pass!23")

        assert credential != "Str0ng-Pass!23"
        assert CredentialService.verify_password("Str0ng-Pass!23", credential) is True
        assert CredentialService.verify_password("wrong-password", credential) is False

    def test_issued_token_verifies_to_user_id(self, user):
        """
        verify_token returns the id the token was issued for.

        Why it matters: REST auth and the websocket middleware both rely on it.
        """
        token = CredentialService.issue_token(user)

        assert CredentialService.verify_token(token) == user.id

    def test_garbage_token_raises_invalid_token(self):
        with pytest.raises(InvalidTokenError):
            CredentialService.verify_token("not-a-jwt")

    def test_token_expires_after_thirty_days(self, user):
        """
        Tokens are valid for 30 days and rejected afterwards.

        Why it matters: Clients stay signed in for a month, no longer.
        """
        with freeze_time("2026-01-01 12:00:00"):
            token = CredentialService.issue_token(user)

        with freeze_time("2026-01-30 12:00:00"):
            assert CredentialService.verify_token(token) == user.id

        with freeze_time("2026-02-01 12:00:01"):
            with pytest.raises(InvalidTokenError):
                CredentialService.verify_token(token)


# =============================================================================
# TestAuthServiceRegister
# =============================================================================


class TestAuthServiceRegister:
    """Tests for AuthService.register()."""

    def test_register_creates_user_and_returns_token(self, db):
        result = AuthService.register("carol", "carol@example.com", DEFAULT_PASSWORD)

        assert result.success is True
        user = result.data["user"]
        assert User.objects.filter(pk=user.pk, username="carol").exists()
        assert user.check_password(DEFAULT_PASSWORD)
        assert CredentialService.verify_token(result.data["token"]) == user.id

    def test_duplicate_email_is_validation_error(self, user):
        """
        Registering an existing email fails with VALIDATION_ERROR.

        Why it matters: Registration duplicates are reported as 400, not 409.
        """
        result = AuthService.register("someone", "ALICE@example.com", DEFAULT_PASSWORD)

        assert result.success is False
        assert result.error_code == "VALIDATION_ERROR"
        assert result.error == "Email already registered"

    def test_duplicate_username_is_validation_error(self, user):
        result = AuthService.register("Alice", "new@example.com", DEFAULT_PASSWORD)

        assert result.success is False
        assert result.error_code == "VALIDATION_ERROR"
        assert result.error == "Username already taken"


# =============================================================================
# TestAuthServiceLogin
# =============================================================================


class TestAuthServiceLogin:
    """Tests for AuthService.login()."""

    def test_login_with_valid_credentials(self, user):
        result = AuthService.login("alice@example.com", DEFAULT_PASSWORD)

        assert result.success is True
        assert result.data["user"] == user
        assert CredentialService.verify_token(result.data["token"]) == user.id

    def test_wrong_password_is_rejected(self, user):
        result = AuthService.login("alice@example.com", "wrong-password")

        assert result.success is False
        assert result.error == "Invalid credentials"

    def test_unknown_email_gets_same_error(self, db):
        """
        Unknown emails fail exactly like wrong passwords.

        Why it matters: Login must not reveal which emails are registered.
        """
        result = AuthService.login("nobody@example.com", DEFAULT_PASSWORD)

        assert result.success is False
        assert result.error == "Invalid credentials"

    def test_inactive_user_cannot_login(self, deactivated_user):
        result = AuthService.login(deactivated_user.email, DEFAULT_PASSWORD)

        assert result.success is False


# =============================================================================
# TestAuthServiceProfile
# =============================================================================


class TestAuthServiceProfile:
    """Tests for update_profile() and update_avatar()."""

    def test_update_username_and_bio(self, user):
        result = AuthService.update_profile(user, username="alice2", bio="  hello  ")

        assert result.success is True
        user.refresh_from_db()
        assert user.username == "alice2"
        assert user.bio == "hello"

    def test_username_taken_by_other_user(self, user, other_user):
        result = AuthService.update_profile(user, username="bob")

        assert result.success is False
        assert result.error_code == "VALIDATION_ERROR"

    def test_keeping_own_username_is_allowed(self, user):
        result = AuthService.update_profile(user, username="alice")

        assert result.success is True

    def test_update_avatar_stores_url_from_blob_store(self, user):
        store = MagicMock()
        store.store.return_value = "/media/avatars/abc.png"

        result = AuthService.update_avatar(user, MagicMock(name="upload"), store)

        assert result.success is True
        user.refresh_from_db()
        assert user.avatar == "/media/avatars/abc.png"
        assert store.store.call_args.kwargs["folder"] == "avatars"

    def test_blob_store_failure_leaves_avatar_unchanged(self, user):
        """
        A storage failure is reported and the old avatar is kept.

        Why it matters: A half-finished upload must not blank the profile.
        """
        user.avatar = "/media/avatars/old.png"
        user.save()
        store = MagicMock()
        store.store.side_effect = ExternalServiceError("File upload failed")

        result = AuthService.update_avatar(user, MagicMock(name="upload"), store)

        assert result.success is False
        assert result.error_code == "EXTERNAL_SERVICE_ERROR"
        user.refresh_from_db()
        assert user.avatar == "/media/avatars/old.png"


# =============================================================================
# TestAuthServiceSearch
# =============================================================================


class TestAuthServiceSearch:
    """Tests for AuthService.search_users()."""

    def test_matches_username_or_email_and_excludes_self(self, user, other_user):
        UserFactory(username="bobby", email="robert@example.com")

        results = list(AuthService.search_users(user, "bob"))

        assert [u.username for u in results] == ["bob", "bobby"]

    def test_search_excludes_requester(self, user):
        assert list(AuthService.search_users(user, "alice")) == []

    def test_blank_query_returns_nothing(self, user, other_user):
        assert list(AuthService.search_users(user, "   ")) == []

    def test_results_capped_at_ten(self, user):
        for i in range(12):
            UserFactory(username=f"match{i:02d}")

        assert len(AuthService.search_users(user, "match")) == 10

    def test_inactive_users_are_hidden(self, user):
        UserFactory(username="ghost", is_active=False)

        assert list(AuthService.search_users(user, "ghost")) == []
