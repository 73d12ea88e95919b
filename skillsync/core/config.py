"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app and the maintenance
scripts share a consistent configuration surface.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    populate_by_name=True,
)


class AtprotoSettings(BaseSettings):
    """Configuration describing this application as an AT Protocol OAuth client."""

    model_config = _ENV_CONFIG

    public_base_url: str = Field(
        "http://localhost:8000",
        validation_alias="ATP_PUBLIC_BASE_URL",
        description="Public origin this service is reachable at.",
    )
    client_name: str = Field("DreamTree Career Workbook", validation_alias="ATP_CLIENT_NAME")
    logo_path: str = Field("/acorn.png", validation_alias="ATP_LOGO_PATH")
    tos_path: str = Field("/terms", validation_alias="ATP_TOS_PATH")
    policy_path: str = Field("/privacy", validation_alias="ATP_POLICY_PATH")
    scope: str = Field("atproto transition:generic", validation_alias="ATP_SCOPE")
    default_pds_url: str = Field("https://bsky.social", validation_alias="ATP_DEFAULT_PDS_URL")
    default_handle_suffix: str = Field(
        ".bsky.social",
        validation_alias="ATP_DEFAULT_HANDLE_SUFFIX",
        description="Handles ending with this suffix skip network resolution.",
    )
    plc_directory_url: str = Field(
        "https://plc.directory", validation_alias="ATP_PLC_DIRECTORY_URL"
    )
    skill_collection: str = Field(
        "com.dreamtree.skill", validation_alias="ATP_SKILL_COLLECTION"
    )
    http_timeout_seconds: float = Field(10.0, validation_alias="ATP_HTTP_TIMEOUT")
    sync_concurrency: int = Field(4, ge=1, validation_alias="ATP_SYNC_CONCURRENCY")

    @field_validator("public_base_url", "default_pds_url", "plc_directory_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("scope")
    @classmethod
    def _normalize_scope(cls, value: str) -> str:
        """Support providing scopes as a comma or space separated string."""
        parts = value.replace(",", " ").split()
        return " ".join(parts)

    @property
    def client_id(self) -> str:
        # The client id must be the URL the metadata document is served from.
        return f"{self.public_base_url}/api/atproto/client-metadata.json"

    @property
    def redirect_uri(self) -> str:
        return f"{self.public_base_url}/api/atproto/callback"


class OAuthSettings(BaseSettings):
    """OAuth flow configuration."""

    model_config = _ENV_CONFIG

    state_ttl_seconds: int = Field(600, validation_alias="OAUTH_STATE_TTL")


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = _ENV_CONFIG

    token_encryption_secret: str = Field(
        ...,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored sessions."
        ),
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = _ENV_CONFIG

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    frontend_base_url: Optional[str] = Field(
        None,
        validation_alias="FRONTEND_BASE_URL",
        description="Origin of the front-end; defaults to the public base URL.",
    )
    profile_path: str = Field("/profile", validation_alias="PROFILE_PATH")
    database_path: str = Field("data/skillsync.db", validation_alias="DATABASE_PATH")
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    atproto: AtprotoSettings = Field(default_factory=AtprotoSettings)

    @property
    def profile_url(self) -> str:
        base = (self.frontend_base_url or self.atproto.public_base_url).rstrip("/")
        return f"{base}{self.profile_path}"


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "AtprotoSettings",
    "OAuthSettings",
    "SecuritySettings",
    "get_settings",
]
