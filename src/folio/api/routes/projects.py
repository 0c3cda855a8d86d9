"""
Project record routes (read only).

- GET /api/projects - All project records
- GET /api/projects/{id} - One project record
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from folio.api.deps import get_project_store
from folio.core.exceptions import ProjectNotFoundError
from folio.core.projects import ProjectStore

router = APIRouter()


@router.get("/projects")
async def list_projects(store: ProjectStore = Depends(get_project_store)) -> Any:
    projects = await store.list_projects()
    return {"success": True, "projects": [p.to_record() for p in projects]}


@router.get("/projects/{project_id}")
async def get_project(project_id: str, store: ProjectStore = Depends(get_project_store)) -> Any:
    try:
        project = await store.get_project(project_id)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return {"success": True, "project": project.to_record()}
