# src/__init__.py — v1
"""metacache: query cache and synchronization layer for the DB admin console."""

from metacache.version import __version__

__all__ = ["__version__"]
