"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from skillsync.clients import AtprotoOAuthClient, PdsResolver, SkillRepository
from skillsync.dependencies.config import get_app_settings, get_atproto_settings
from skillsync.services import (
    AtprotoOAuthService,
    ConnectionStore,
    OAuthStateStore,
    SkillSyncService,
    TokenCipherService,
)


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for session storage."""
    settings = get_app_settings()
    return TokenCipherService(secret=settings.security.token_encryption_secret)


@lru_cache()
def get_oauth_state_store() -> OAuthStateStore:
    settings = get_app_settings()
    return OAuthStateStore(
        settings.database_path, ttl_seconds=settings.oauth.state_ttl_seconds
    )


@lru_cache()
def get_connection_store() -> ConnectionStore:
    settings = get_app_settings()
    return ConnectionStore(settings.database_path, cipher=get_token_cipher_service())


@lru_cache()
def get_skill_repository() -> SkillRepository:
    return SkillRepository(get_app_settings().database_path)


@lru_cache()
def get_pds_resolver() -> PdsResolver:
    return PdsResolver(get_atproto_settings())


@lru_cache()
def get_atproto_oauth_client() -> AtprotoOAuthClient:
    return AtprotoOAuthClient(get_atproto_settings())


def get_atproto_oauth_service() -> AtprotoOAuthService:
    """Build the connect/callback orchestrator."""
    return AtprotoOAuthService(
        settings=get_atproto_settings(),
        resolver=get_pds_resolver(),
        oauth_client=get_atproto_oauth_client(),
        state_store=get_oauth_state_store(),
        connections=get_connection_store(),
    )


def get_skill_sync_service() -> SkillSyncService:
    """Build the skill sync engine."""
    return SkillSyncService(
        settings=get_atproto_settings(),
        connections=get_connection_store(),
        skills=get_skill_repository(),
        oauth_client=get_atproto_oauth_client(),
    )


__all__ = [
    "get_atproto_oauth_client",
    "get_atproto_oauth_service",
    "get_connection_store",
    "get_oauth_state_store",
    "get_pds_resolver",
    "get_skill_repository",
    "get_skill_sync_service",
    "get_token_cipher_service",
]
