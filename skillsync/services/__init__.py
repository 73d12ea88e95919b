"""Service layer exports."""

from .connections import ConnectionStore
from .oauth_flow import AtprotoOAuthService, AuthorizationRequest
from .oauth_state import OAuthStateStore
from .skill_sync import SkillSyncService
from .token_cipher import TokenCipherService

__all__ = [
    "AtprotoOAuthService",
    "AuthorizationRequest",
    "ConnectionStore",
    "OAuthStateStore",
    "SkillSyncService",
    "TokenCipherService",
]
