"""
FastAPI routes for linking an AT Protocol account and syncing skills to it.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from skillsync.core.errors import (
    AtprotoError,
    InvalidInputError,
    NotConnectedError,
    SessionExpiredError,
    UpstreamUnavailableError,
)
from skillsync.dependencies import (
    get_app_settings,
    get_atproto_oauth_service,
    get_connection_store,
    get_current_user_id,
    get_skill_sync_service,
)
from skillsync.schemas import (
    ConnectRequest,
    ConnectResponse,
    ConnectionStatusResponse,
    DisconnectResponse,
    SyncResultResponse,
    SyncSettingsRequest,
)

router = APIRouter()
logger = logging.getLogger(__name__)

CurrentUser = Annotated[str, Depends(get_current_user_id)]


def _http_error(exc: AtprotoError, status_code: int | None = None) -> HTTPException:
    return HTTPException(
        status_code=status_code or exc.status_code,
        detail={"error": exc.reason, "message": exc.detail},
    )


def _server_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        detail={"error": "internal_error", "message": message},
    )


def _profile_redirect(profile_url: str, **params: str) -> RedirectResponse:
    return RedirectResponse(
        url=f"{profile_url}?{urlencode(params)}",
        status_code=HTTPStatus.TEMPORARY_REDIRECT,
    )


async def _read_connect_request(request: Request) -> ConnectRequest:
    """Parse the connect body; anything other than a JSON object with a string handle is a 400."""
    body = await request.body()
    if not body.strip():
        return ConnectRequest()
    try:
        return ConnectRequest.model_validate_json(body)
    except ValidationError as exc:
        raise _http_error(
            InvalidInputError("Body must be a JSON object with a string handle.")
        ) from exc


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/atproto/client-metadata.json", status_code=HTTPStatus.OK)
async def atproto_client_metadata(
    service: Annotated[Any, Depends(get_atproto_oauth_service)],
) -> dict:
    """OAuth client metadata; its URL doubles as this application's client id."""
    return service.client_metadata()


@router.post(
    "/atproto/connect",
    response_model=ConnectResponse,
    status_code=HTTPStatus.OK,
)
async def connect_atproto_account(
    request: Request,
    user_id: CurrentUser,
    service: Annotated[Any, Depends(get_atproto_oauth_service)],
) -> ConnectResponse:
    """Resolve the handle's PDS and return the authorization URL to send the user to."""
    payload = await _read_connect_request(request)
    handle = payload.handle
    try:
        authorization = await service.initiate(user_id=user_id, handle=handle)
    except InvalidInputError as exc:
        raise _http_error(exc) from exc
    except UpstreamUnavailableError as exc:
        raise _http_error(exc, HTTPStatus.BAD_REQUEST) from exc
    except Exception as exc:  # pragma: no cover - defensive
        logger.exception("Failed to initiate AT Protocol OAuth flow")
        raise _server_error("Failed to initiate OAuth flow.") from exc

    return ConnectResponse(auth_url=authorization.auth_url, pds_url=authorization.pds_url)


@router.get("/atproto/callback")
async def handle_atproto_callback(
    service: Annotated[Any, Depends(get_atproto_oauth_service)],
    settings: Annotated[Any, Depends(get_app_settings)],
    code: Optional[str] = Query(None, description="Authorization code."),
    state: Optional[str] = Query(None, description="OAuth state token."),
    error: Optional[str] = Query(None, description="Error code from the authorization server."),
    error_description: Optional[str] = Query(None),
) -> RedirectResponse:
    """Browser redirect target. Always answers with a redirect to the profile page."""
    profile_url = settings.profile_url
    try:
        connection = await service.complete(
            code=code,
            state=state,
            error=error,
            error_description=error_description,
        )
    except AtprotoError as exc:
        logger.warning("AT Protocol callback failed: %s", exc.reason)
        return _profile_redirect(profile_url, atp_error=exc.reason)
    except Exception:
        logger.exception("Unexpected error completing AT Protocol callback")
        return _profile_redirect(profile_url, atp_error="unknown")

    logger.info("Linked AT Protocol account %s for user %s", connection.did, connection.user_id)
    return _profile_redirect(profile_url, atp="connected")


@router.get(
    "/atproto/status",
    response_model=ConnectionStatusResponse,
    response_model_exclude_none=True,
)
async def atproto_connection_status(
    user_id: CurrentUser,
    store: Annotated[Any, Depends(get_connection_store)],
) -> ConnectionStatusResponse:
    try:
        status = store.status(user_id)
    except Exception as exc:  # pragma: no cover - defensive
        logger.exception("Failed to read AT Protocol status for user %s", user_id)
        raise _server_error("Failed to get status.") from exc
    return ConnectionStatusResponse.from_status(status)


@router.post("/atproto/disconnect", response_model=DisconnectResponse)
async def disconnect_atproto_account(
    user_id: CurrentUser,
    store: Annotated[Any, Depends(get_connection_store)],
) -> DisconnectResponse:
    """Forget the local linkage; records already on the PDS belong to the user."""
    try:
        store.delete(user_id)
    except Exception as exc:  # pragma: no cover - defensive
        logger.exception("Failed to disconnect AT Protocol account for user %s", user_id)
        raise _server_error("Failed to disconnect.") from exc
    return DisconnectResponse(success=True)


@router.post("/atproto/sync/skills", response_model=SyncResultResponse)
async def sync_all_skills(
    user_id: CurrentUser,
    sync_service: Annotated[Any, Depends(get_skill_sync_service)],
) -> SyncResultResponse:
    try:
        result = await sync_service.sync_all(user_id)
    except (NotConnectedError, SessionExpiredError) as exc:
        raise _http_error(exc) from exc
    except Exception as exc:
        logger.exception("Failed to sync skills for user %s", user_id)
        raise _server_error("Failed to sync skills.") from exc
    return SyncResultResponse.from_result(result)


@router.post("/atproto/sync/skills/{record_id}", response_model=SyncResultResponse)
async def sync_single_skill(
    record_id: str,
    user_id: CurrentUser,
    sync_service: Annotated[Any, Depends(get_skill_sync_service)],
) -> SyncResultResponse:
    try:
        result = await sync_service.sync_one(user_id, record_id)
    except (InvalidInputError, SessionExpiredError) as exc:
        raise _http_error(exc) from exc
    except Exception as exc:
        logger.exception("Failed to sync skill %s for user %s", record_id, user_id)
        raise _server_error("Failed to sync skill.") from exc
    return SyncResultResponse.from_result(result)


@router.post(
    "/atproto/sync/settings",
    response_model=ConnectionStatusResponse,
    response_model_exclude_none=True,
)
async def update_sync_settings(
    payload: SyncSettingsRequest,
    user_id: CurrentUser,
    store: Annotated[Any, Depends(get_connection_store)],
) -> ConnectionStatusResponse:
    if not store.set_sync_enabled(user_id, payload.enabled):
        raise _http_error(NotConnectedError("Not connected to AT Protocol."))
    return ConnectionStatusResponse.from_status(store.status(user_id))


__all__ = ["router"]
