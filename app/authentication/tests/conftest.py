"""
Test configuration and fixtures for authentication tests.

This module provides:
- User fixtures
- API client helpers for authenticated requests
- A small in-memory PNG for upload tests

Usage:
    def test_example(user, authenticated_client):
        response = authenticated_client.get("/api/auth/me/")
        assert response.status_code == 200
"""

import io

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image
from rest_framework.test import APIClient

from authentication.services import CredentialService
from authentication.tests.factories import UserFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a basic active user."""
    return UserFactory(username="alice", email="alice@example.com")


@pytest.fixture
def other_user(db):
    """Create a second user for search/lookup tests."""
    return UserFactory(username="bob", email="bob@example.com")


@pytest.fixture
def deactivated_user(db):
    """Create a deactivated user (is_active=False)."""
    return UserFactory(is_active=False)


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def authenticated_client(user):
    """API client sending the user's bearer token."""
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {CredentialService.issue_token(user)}")
    return client


# =============================================================================
# Upload Fixtures
# =============================================================================


def make_png(name="avatar.png", size=(8, 8)):
    """Build a real PNG upload (DRF's ImageField verifies it with Pillow)."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format="PNG")
    return SimpleUploadedFile(name, buffer.getvalue(), content_type="image/png")


@pytest.fixture
def png_file():
    return make_png()
