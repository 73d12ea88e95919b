"""Expose dependency helpers for FastAPI routers."""

from .auth import get_current_user_id
from .clients import (
    get_atproto_oauth_client,
    get_atproto_oauth_service,
    get_connection_store,
    get_oauth_state_store,
    get_pds_resolver,
    get_skill_repository,
    get_skill_sync_service,
    get_token_cipher_service,
)
from .config import get_app_settings, get_atproto_settings

__all__ = [
    "get_app_settings",
    "get_atproto_settings",
    "get_atproto_oauth_client",
    "get_atproto_oauth_service",
    "get_connection_store",
    "get_current_user_id",
    "get_oauth_state_store",
    "get_pds_resolver",
    "get_skill_repository",
    "get_skill_sync_service",
    "get_token_cipher_service",
]
