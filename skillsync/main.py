"""
FastAPI application entrypoint for the AT Protocol skill sync service.

Mounts the account-linking routes (client metadata, connect, callback,
status, disconnect) and the skill sync routes under ``/api``.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from skillsync.api.routes import router as api_router
from skillsync.core.config import get_settings
from skillsync.core.logging import configure_logging

logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {
        "name": "atproto",
        "description": "Link an AT Protocol identity and push skills to its PDS.",
    },
]


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Skill Sync",
        version="0.1.0",
        description=(
            "OAuth (PKCE) account linking to a user's AT Protocol PDS and "
            "outbound sync of their skills as repo records."
        ),
        openapi_tags=OPENAPI_TAGS,
        docs_url=None if settings.environment == "production" else "/docs",
    )
    app.include_router(api_router, prefix="/api", tags=["atproto"])
    logger.info(
        "Skill sync API configured (env=%s, client_id=%s)",
        settings.environment,
        settings.atproto.client_id,
    )
    return app


app = create_app()

__all__ = ["app", "create_app"]
