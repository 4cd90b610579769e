"""
Authentication services.

This module provides:
- CredentialService: Password hashing/verification and JWT issue/verify
- AuthService: Registration, login and profile updates

Related files:
    - models.py: User
    - serializers.py: Request validation for the auth endpoints
    - chat/middleware.py: Uses CredentialService.verify_token for websockets

Security:
    - Passwords hashed with Django's password hashers
    - Access tokens are simplejwt AccessTokens; lifetime comes from
      SIMPLE_JWT["ACCESS_TOKEN_LIFETIME"] (30 days by default)
    - Login failures never reveal whether the email exists
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.contrib.auth.hashers import check_password, make_password
from django.db import IntegrityError
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

from core.exceptions import ExternalServiceError
from core.services import BaseService, ErrorCode, ServiceResult

if TYPE_CHECKING:
    from django.core.files.base import File

    from authentication.models import User
    from toolkit.protocols import BlobStore

logger = logging.getLogger(__name__)


class InvalidTokenError(Exception):
    """Raised when a token is malformed, expired, or has no user id."""


class CredentialService:
    """
    Opaque credential operations used by the rest of the app.

    Usage:
        credential = CredentialService.hash_password("s3cret-pass")
        CredentialService.verify_password("s3cret-pass", credential)  # True

        token = CredentialService.issue_token(user)
        user_id = CredentialService.verify_token(token)
    """

    @staticmethod
    def hash_password(password: str) -> str:
        return make_password(password)

    @staticmethod
    def verify_password(password: str, credential: str) -> bool:
        return check_password(password, credential)

    @staticmethod
    def issue_token(user: User) -> str:
        """Issue a signed access token for the user."""
        return str(AccessToken.for_user(user))

    @staticmethod
    def verify_token(token: str) -> int:
        """
        Validate a token and return the user id it was issued for.

        Raises:
            InvalidTokenError: If the token is invalid or expired
        """
        try:
            access_token = AccessToken(token)
        except TokenError as exc:
            raise InvalidTokenError(str(exc)) from exc

        user_id = access_token.get("user_id")
        if user_id is None:
            raise InvalidTokenError("Token contained no recognizable user identification")
        return int(user_id)


class AuthService(BaseService):
    """
    Registration, login and profile business logic.

    Usage:
        result = AuthService.register("alice", "alice@example.com", "pw12345678")
        if result.success:
            token, user = result.data["token"], result.data["user"]
    """

    @classmethod
    def register(cls, username: str, email: str, password: str) -> ServiceResult[dict]:
        """
        Create a user and issue a token.

        Error codes:
            VALIDATION_ERROR: Email or username already taken
        """
        from authentication.models import User

        email = User.objects.normalize_email(email).strip()
        username = username.strip()

        if User.objects.filter(email__iexact=email).exists():
            return ServiceResult.failure(
                "Email already registered", error_code=ErrorCode.VALIDATION_ERROR
            )
        if User.objects.filter(username__iexact=username).exists():
            return ServiceResult.failure(
                "Username already taken", error_code=ErrorCode.VALIDATION_ERROR
            )

        try:
            with cls.atomic():
                user = User.objects.create_user(
                    email=email, username=username, password=password
                )
        except IntegrityError:
            # Lost a race with a concurrent registration
            return ServiceResult.failure(
                "Email or username already registered",
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        cls.get_logger().info(f"Registered user {user.id} ({user.username})")
        return ServiceResult.success(
            {"token": CredentialService.issue_token(user), "user": user}
        )

    @classmethod
    def login(cls, email: str, password: str) -> ServiceResult[dict]:
        """
        Verify credentials and issue a token.

        Error codes:
            VALIDATION_ERROR: Unknown email, wrong password or inactive user
        """
        from authentication.models import User

        user = User.objects.filter(email__iexact=email.strip()).first()
        if (
            user is None
            or not user.is_active
            or not CredentialService.verify_password(password, user.password)
        ):
            cls.get_logger().info(f"Failed login attempt for {email}")
            return ServiceResult.failure(
                "Invalid credentials", error_code=ErrorCode.VALIDATION_ERROR
            )

        return ServiceResult.success(
            {"token": CredentialService.issue_token(user), "user": user}
        )

    @classmethod
    def update_profile(
        cls,
        user: User,
        username: str | None = None,
        bio: str | None = None,
    ) -> ServiceResult[User]:
        """
        Update username and/or bio.

        Error codes:
            VALIDATION_ERROR: Username taken by another user
        """
        from authentication.models import User

        update_fields = ["updated_at"]
        if username is not None:
            username = username.strip()
            if (
                User.objects.filter(username__iexact=username)
                .exclude(pk=user.pk)
                .exists()
            ):
                return ServiceResult.failure(
                    "Username already taken", error_code=ErrorCode.VALIDATION_ERROR
                )
            user.username = username
            update_fields.append("username")
        if bio is not None:
            user.bio = bio.strip()
            update_fields.append("bio")

        user.save(update_fields=update_fields)
        cls.get_logger().info(f"Updated profile for user {user.id}")
        return ServiceResult.success(user)

    @classmethod
    def update_avatar(cls, user: User, file: File, store: BlobStore) -> ServiceResult[User]:
        """Store the uploaded image and point the user's avatar at it."""
        try:
            url = store.store(file, folder="avatars")
        except ExternalServiceError as exc:
            return cls.handle_exception(exc, "avatar upload", logging.WARNING)

        user.avatar = url
        user.save(update_fields=["avatar", "updated_at"])
        cls.get_logger().info(f"Updated avatar for user {user.id}")
        return ServiceResult.success(user)

    @classmethod
    def search_users(cls, user: User, query: str, limit: int = 10):
        """Find other users whose username or email contains the query."""
        from django.db.models import Q

        from authentication.models import User

        query = query.strip()
        if not query:
            return User.objects.none()
        return (
            User.objects.filter(is_active=True)
            .filter(Q(username__icontains=query) | Q(email__icontains=query))
            .exclude(pk=user.pk)
            .order_by("username")[:limit]
        )
