"""Toolkit services."""
