"""
Serializers for authentication endpoints.

This module provides DRF serializers for:
- User (public profile shape used everywhere a user is shown)
- Registration and login requests
- Profile update and avatar upload requests

Related files:
    - models.py: User model
    - views.py: Views that use these serializers
    - services.py: AuthService performs the actual writes

Security:
    - Password fields are write-only
    - Email is only exposed on the authenticated user's own record
"""

from django.conf import settings
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from authentication.models import BIO_MAX_LENGTH, User, validate_username_format
from core.validators import validate_file_size, validate_image_extension, validate_no_html


class UserSummarySerializer(serializers.ModelSerializer):
    """Public user shape embedded in conversations and messages."""

    class Meta:
        model = User
        fields = ["id", "username", "avatar"]
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    """Full user record (own account, registration/login responses)."""

    class Meta:
        model = User
        fields = ["id", "username", "email", "avatar", "bio", "date_joined"]
        read_only_fields = fields


class PublicUserSerializer(serializers.ModelSerializer):
    """Another user's profile as returned by user lookup/search."""

    class Meta:
        model = User
        fields = ["id", "username", "avatar", "bio"]
        read_only_fields = fields


class RegisterSerializer(serializers.Serializer):
    """Validate registration input."""

    username = serializers.CharField(max_length=30, validators=[validate_username_format])
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)

    def validate(self, attrs):
        candidate = User(username=attrs["username"], email=attrs["email"])
        validate_password(attrs["password"], user=candidate)
        return attrs


class LoginSerializer(serializers.Serializer):
    """Validate login input."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class ProfileUpdateSerializer(serializers.Serializer):
    """Validate profile update input (username and/or bio)."""

    username = serializers.CharField(
        max_length=30, required=False, validators=[validate_username_format]
    )
    bio = serializers.CharField(
        max_length=BIO_MAX_LENGTH,
        required=False,
        allow_blank=True,
        validators=[validate_no_html],
    )

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide a username or bio to update")
        return attrs


class AvatarUploadSerializer(serializers.Serializer):
    """Validate an avatar upload (image, size-limited)."""

    avatar = serializers.ImageField(
        validators=[
            validate_file_size(max_mb=settings.CHAT_MAX_UPLOAD_MB),
            validate_image_extension,
        ]
    )
