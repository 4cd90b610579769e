"""
Authentication models.

This module defines the chat user:
- User: Email-login account carrying the public chat profile
  (username, avatar URL, bio)

Related files:
    - managers.py: Custom user manager for email-based creation
    - services.py: CredentialService (hash/verify/token) and AuthService

Security:
    - Passwords hashed with Django's configured PASSWORD_HASHERS
    - Tokens are simplejwt access tokens (see CredentialService)
"""

import re

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models

from authentication.managers import UserManager

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]{3,30}$")
BIO_MAX_LENGTH = 500


def validate_username_format(value):
    """Validate username format: 3-30 chars, letters, digits, _ . -"""
    if not USERNAME_PATTERN.match(value):
        raise ValidationError(
            "Username must be 3-30 characters and contain only "
            "letters, numbers, underscores, dots, and hyphens."
        )


class User(AbstractBaseUser, PermissionsMixin):
    """
    Chat user, authenticated by email.

    Fields:
        username: Unique public handle shown in conversations
        email: Unique login identifier
        avatar: URL returned by the blob store (empty if unset)
        bio: Short free-text profile description
        is_active: Whether the account may log in
        is_staff: Whether the user can access Django admin
        date_joined: When the account was created
        updated_at: When the user record was last modified

    Usage:
        user = User.objects.create_user(
            email="alice@example.com",
            username="alice",
            password="s3cret-pass",
        )
    """

    username = models.CharField(
        max_length=30,
        unique=True,
        validators=[validate_username_format],
        help_text="Unique public handle",
    )
    email = models.EmailField(
        unique=True,
        max_length=254,
        help_text="User's email address (login identifier)",
    )
    avatar = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Avatar image URL",
    )
    bio = models.CharField(
        max_length=BIO_MAX_LENGTH,
        blank=True,
        default="",
        help_text="Short profile description",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["username"]

    def __str__(self):
        return self.username

    def get_full_name(self):
        return self.username

    def get_short_name(self):
        return self.username
