"""Integrations with external services.

This package contains clients for third-party research APIs.
"""
