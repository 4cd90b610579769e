"""
Tests for authentication app.

This package contains test modules for:
- test_services.py: CredentialService and AuthService tests
- test_views.py: Auth and user lookup endpoint tests

Usage:
    pytest authentication/tests/
    pytest authentication/tests/test_views.py
"""
