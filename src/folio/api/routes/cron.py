"""
Scheduled sync entry point (GET/POST /api/cron/sync-github).

Callers authenticate with ``Authorization: Bearer <CRON_SECRET>``.
"""

import hmac
import logging
from typing import Any

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from folio.api.deps import get_config, get_sync_service
from folio.core.config import FolioConfig
from folio.core.sync import ProjectSyncService

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_cron_auth(authorization: str | None, secret: str | None) -> JSONResponse | None:
    if not secret:
        logger.error("CRON_SECRET environment variable not set")
        return JSONResponse(status_code=500, content={"error": "Cron secret not configured"})
    expected = f"Bearer {secret}".encode()
    if not hmac.compare_digest((authorization or "").encode(), expected):
        logger.error("Invalid cron secret provided")
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})
    return None


@router.api_route("/cron/sync-github", methods=["GET", "POST"])
async def cron_sync_github(
    authorization: str | None = Header(default=None),
    config: FolioConfig = Depends(get_config),
    service: ProjectSyncService = Depends(get_sync_service),
) -> Any:
    """
    Run the scheduled sync.

    A run aborted for low GitHub quota still answers 200 with
    ``success: false``; only unexpected failures answer 500.
    """
    if denied := _check_cron_auth(authorization, config.cron.secret):
        return denied

    try:
        report = await service.run_scheduled()
    except Exception as e:
        logger.error("GitHub sync job failed: %s", e)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(e) or "Unknown error"},
        )
    return report.to_response()
