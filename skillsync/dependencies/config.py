"""
Settings exposed as FastAPI dependencies.

Routes and the client factories in ``clients.py`` read the same cached
``AppSettings`` instance, so overriding ``get_app_settings`` in tests only
affects route handlers.
"""

from skillsync.core.config import AppSettings, AtprotoSettings, get_settings


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return get_settings()


def get_atproto_settings() -> AtprotoSettings:
    return get_settings().atproto


__all__ = ["get_app_settings", "get_atproto_settings"]
