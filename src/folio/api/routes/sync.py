"""
GitHub sync routes.

Provides endpoints for syncing project records from GitHub:
- GET /api/sync-github - Sync every project with a URL (or ?projectId=)
- POST /api/sync-github - Preview a URL ({githubUrl}) or sync one project ({projectId})
- POST /api/sync-github-single - Manual single sync (?projectId=)
- POST /api/admin/bulk-sync - Manual bulk sync
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from folio.api.deps import get_sync_service
from folio.core.exceptions import ProjectNotFoundError
from folio.core.github import parse_repository_url
from folio.core.sync import ProjectSyncService, SyncReport

logger = logging.getLogger(__name__)

router = APIRouter()


class SyncRequest(BaseModel):
    """Request body for POST /api/sync-github."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    github_url: str | None = None
    project_id: str | None = None


def _failed_run(error: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": str(error) or "Unknown error",
            "results": [],
            "totalProcessed": 0,
            "totalSuccess": 0,
            "totalErrors": 1,
        },
    )


@router.get("/sync-github")
async def sync_github(
    project_id: str | None = Query(default=None, alias="projectId"),
    rate_limit: bool = Query(default=False, alias="rateLimit"),
    service: ProjectSyncService = Depends(get_sync_service),
) -> Any:
    """
    Sync all projects that have a GitHub URL, or just ``projectId``.

    With ``rateLimit=true`` the current GitHub quota is included in the
    response.
    """
    try:
        if project_id is None:
            report = await service.sync_all(include_rate_limit=rate_limit)
            return report.to_response()

        budget = await service.check_rate_budget() if rate_limit else None
        try:
            result = await service.sync_project_by_id(project_id)
        except ProjectNotFoundError:
            return SyncReport(success=True, rate_limit=budget, message="Project not found").to_response()
        return SyncReport(success=True, results=[result], rate_limit=budget).to_response()
    except Exception as e:
        logger.error("Error in GitHub sync: %s", e)
        return _failed_run(e)


@router.post("/sync-github")
async def sync_github_post(
    request: SyncRequest,
    service: ProjectSyncService = Depends(get_sync_service),
) -> Any:
    """
    Preview a repository by URL, or sync one existing project.

    ``githubUrl`` wins when both are given. A preview never writes.
    """
    if not request.github_url and not request.project_id:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Either githubUrl or projectId is required"},
        )

    if request.github_url:
        if parse_repository_url(request.github_url) is None:
            return JSONResponse(
                status_code=400, content={"success": False, "error": "Invalid GitHub URL format"}
            )
        preview = await service.preview(request.github_url)
        if preview is None:
            return JSONResponse(
                status_code=404, content={"success": False, "error": "Failed to fetch GitHub data"}
            )
        return {"success": True, "githubData": preview.model_dump(mode="json", by_alias=True)}

    try:
        result = await service.sync_project_by_id(request.project_id)
    except ProjectNotFoundError as e:
        return JSONResponse(status_code=404, content={"success": False, "error": str(e)})
    return result.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.post("/sync-github-single")
async def sync_github_single(
    project_id: str | None = Query(default=None, alias="projectId"),
    service: ProjectSyncService = Depends(get_sync_service),
) -> Any:
    if not project_id:
        return JSONResponse(status_code=400, content={"error": "Project ID required"})

    try:
        project = await service.store.get_project(project_id)
    except ProjectNotFoundError as e:
        return JSONResponse(status_code=404, content={"error": str(e)})

    if not project.github_url:
        return JSONResponse(status_code=400, content={"error": "No GitHub URL found"})
    if parse_repository_url(project.github_url) is None:
        return JSONResponse(status_code=400, content={"error": "Invalid GitHub URL format"})

    result = await service.sync_one(project)
    if not result.success:
        return JSONResponse(status_code=500, content={"error": result.error})
    return result.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.post("/admin/bulk-sync")
async def bulk_sync(service: ProjectSyncService = Depends(get_sync_service)) -> Any:
    """Sync every project with a GitHub URL, paced like the scheduled run."""
    try:
        report = await service.sync_all()
    except Exception as e:
        logger.error("Bulk sync error: %s", e)
        return _failed_run(e)
    return report.to_response()
