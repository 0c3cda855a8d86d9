"""
Work session collection routes.

- GET /api/sessions - Load completed sessions
- POST /api/sessions - Replace the stored sessions (active ones are dropped)
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from folio.api.deps import get_accountability_backend
from folio.core.accountability import KVAccountabilityBackend, WorkSession
from folio.core.accountability.models import dump_collection
from folio.core.exceptions import FolioError

logger = logging.getLogger(__name__)

router = APIRouter()


class SessionsPayload(BaseModel):
    sessions: list[WorkSession]


@router.get("/sessions")
async def load_sessions(
    backend: KVAccountabilityBackend = Depends(get_accountability_backend),
) -> Any:
    try:
        sessions = await backend.load_sessions()
    except FolioError as e:
        logger.error("Failed to load sessions: %s", e)
        return JSONResponse(
            status_code=500, content={"success": False, "error": "Failed to load sessions"}
        )
    return {"success": True, "sessions": dump_collection(sessions)}


@router.post("/sessions")
async def save_sessions(
    payload: SessionsPayload,
    backend: KVAccountabilityBackend = Depends(get_accountability_backend),
) -> Any:
    try:
        await backend.save_sessions(payload.sessions)
    except FolioError as e:
        logger.error("Failed to save sessions: %s", e)
        return JSONResponse(
            status_code=500, content={"success": False, "error": "Failed to save sessions"}
        )
    return {"success": True}
