"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Database constraints on conversations and messages
- test_services.py: ConversationService and MessageService tests
- test_views.py: REST API endpoint tests
- test_consumers.py: WebSocket consumer tests
- test_middleware.py: WebSocket JWT middleware tests
- test_realtime.py: Broadcast helper tests
- test_presence.py: Presence registry tests

Usage:
    pytest chat/tests/
    pytest chat/tests/test_consumers.py
"""
