"""
Tests for core app.

This package contains test modules for:
- test_exceptions.py: Error hierarchy and API error rendering
- test_validators.py: Upload and text validators
- test_views.py: Health check
"""
