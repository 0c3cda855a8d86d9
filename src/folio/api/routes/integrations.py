"""
Beeminder and Focusmate proxies.

Upstream bodies are passed through unchanged. Errors answer
``{"error": "..."}`` with the upstream status code, or 500 when the
integration is not configured or unreachable.
"""

import logging
from typing import Any

import httpx
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from folio.api.deps import get_config, get_integration_transport
from folio.core.config import FolioConfig
from folio.core.exceptions import IntegrationNotConfiguredError, UpstreamError
from folio.core.integrations import BeeminderClient, FocusmateClient

logger = logging.getLogger(__name__)

router = APIRouter()


def _error_response(
    e: IntegrationNotConfiguredError | UpstreamError, not_configured: str
) -> JSONResponse:
    logger.error("%s", e)
    if isinstance(e, UpstreamError):
        return JSONResponse(status_code=e.status_code or 500, content={"error": e.message})
    return JSONResponse(status_code=500, content={"error": not_configured})


@router.get("/beeminder/user")
async def beeminder_user(
    config: FolioConfig = Depends(get_config),
    transport: httpx.AsyncBaseTransport | None = Depends(get_integration_transport),
) -> Any:
    settings = config.integrations
    try:
        async with BeeminderClient(
            settings.beeminder_username, settings.beeminder_auth_token, transport=transport
        ) as client:
            return await client.get_user()
    except (IntegrationNotConfiguredError, UpstreamError) as e:
        return _error_response(e, "Beeminder credentials not configured")


@router.get("/beeminder/goals/{slug}")
async def beeminder_goal(
    slug: str,
    datapoints: bool = True,
    config: FolioConfig = Depends(get_config),
    transport: httpx.AsyncBaseTransport | None = Depends(get_integration_transport),
) -> Any:
    settings = config.integrations
    try:
        async with BeeminderClient(
            settings.beeminder_username, settings.beeminder_auth_token, transport=transport
        ) as client:
            return await client.get_goal(slug, datapoints=datapoints)
    except (IntegrationNotConfiguredError, UpstreamError) as e:
        return _error_response(e, "Beeminder credentials not configured")


@router.get("/focusmate/profile")
async def focusmate_profile(
    config: FolioConfig = Depends(get_config),
    transport: httpx.AsyncBaseTransport | None = Depends(get_integration_transport),
) -> Any:
    try:
        async with FocusmateClient(config.integrations.focusmate_api_key, transport=transport) as client:
            return await client.get_profile()
    except (IntegrationNotConfiguredError, UpstreamError) as e:
        return _error_response(e, "Focusmate API key not configured")


@router.get("/focusmate/sessions")
async def focusmate_sessions(
    start: str | None = Query(default=None),
    end: str | None = Query(default=None),
    config: FolioConfig = Depends(get_config),
    transport: httpx.AsyncBaseTransport | None = Depends(get_integration_transport),
) -> Any:
    """Sessions between ``start`` and ``end`` (ISO 8601), last 30 days by default."""
    try:
        async with FocusmateClient(config.integrations.focusmate_api_key, transport=transport) as client:
            return await client.get_sessions(start, end)
    except (IntegrationNotConfiguredError, UpstreamError) as e:
        return _error_response(e, "Focusmate API key not configured")
