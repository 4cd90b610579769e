"""
Authentication application.

Key components:
    - User model: Email-login account with username, avatar URL and bio
    - CredentialService: Password hashing and JWT issue/verify
    - AuthService: Registration, login, profile and avatar updates

Usage:
    from authentication.models import User
    from authentication.services import AuthService, CredentialService
"""
