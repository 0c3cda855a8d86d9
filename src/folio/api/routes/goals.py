"""
Goal collection routes.

- GET /api/goals - Load the whole goals collection
- POST /api/goals - Replace the whole goals collection

The client store owns merging; the server only persists what it is sent.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from folio.api.deps import get_accountability_backend
from folio.core.accountability import Goal, KVAccountabilityBackend
from folio.core.accountability.models import dump_collection
from folio.core.exceptions import FolioError

logger = logging.getLogger(__name__)

router = APIRouter()


class GoalsPayload(BaseModel):
    """Request body for POST /api/goals."""

    goals: list[Goal]


@router.get("/goals")
async def load_goals(
    backend: KVAccountabilityBackend = Depends(get_accountability_backend),
) -> Any:
    try:
        goals = await backend.load_goals()
    except FolioError as e:
        logger.error("Failed to load goals: %s", e)
        return JSONResponse(
            status_code=500, content={"success": False, "error": "Failed to load goals"}
        )
    return {"success": True, "goals": dump_collection(goals)}


@router.post("/goals")
async def save_goals(
    payload: GoalsPayload,
    backend: KVAccountabilityBackend = Depends(get_accountability_backend),
) -> Any:
    try:
        await backend.save_goals(payload.goals)
    except FolioError as e:
        logger.error("Failed to save goals: %s", e)
        return JSONResponse(
            status_code=500, content={"success": False, "error": "Failed to save goals"}
        )
    return {"success": True}
