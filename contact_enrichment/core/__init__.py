"""Core module for configuration, errors, and resilience utilities."""
