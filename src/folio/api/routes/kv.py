"""Key-value store health check (GET /api/kv/health)."""

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from folio.api.deps import get_config, get_kv_store
from folio.core.config import FolioConfig
from folio.core.kv import KeyValueStore

router = APIRouter()


@router.get("/kv/health")
async def kv_health(
    kv: KeyValueStore = Depends(get_kv_store),
    config: FolioConfig = Depends(get_config),
) -> Any:
    if not await kv.ping():
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Key-value connection failed"},
        )
    return {
        "success": True,
        "message": "Key-value connection successful",
        "configured": config.kv.is_configured,
    }
