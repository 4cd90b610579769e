"""
Tests for toolkit app.

This package contains test modules for:
- test_storage.py: DefaultStorageBlobStore tests

Usage:
    pytest toolkit/tests/
"""
