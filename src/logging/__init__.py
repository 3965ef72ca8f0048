"""Logging setup and contextual log fields."""
