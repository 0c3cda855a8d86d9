"""
Project persistence adapters.

The sync only needs three operations from whatever owns the records:
list, get and a partial top-level update. ``JsonProjectStore`` keeps the
records in one JSON file; ``InMemoryProjectStore`` backs tests and
previews.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError

from folio.core.exceptions import ProjectNotFoundError, StoreError
from folio.core.projects.models import Project

logger = logging.getLogger(__name__)


@runtime_checkable
class ProjectStore(Protocol):
    """Persistence interface used by the project sync."""

    async def list_projects(self) -> list[Project]: ...

    async def get_project(self, project_id: str) -> Project: ...

    async def update_project(self, project_id: str, data: dict[str, Any]) -> Project: ...


def _apply_update(record: dict[str, Any], data: dict[str, Any]) -> Project:
    merged = {**record, **data}
    try:
        return Project.model_validate(merged)
    except ValidationError as e:
        raise StoreError(
            f"Update for project {record.get('id')} is invalid: {e}",
            project_id=record.get("id"),
        ) from e


class InMemoryProjectStore:
    """Dict-backed store. Records are copied in and out."""

    def __init__(self, projects: list[Project] | None = None) -> None:
        self._records: dict[str, dict[str, Any]] = {}
        for project in projects or []:
            self._records[project.id] = project.to_record()

    async def list_projects(self) -> list[Project]:
        return [Project.model_validate(r) for r in self._records.values()]

    async def get_project(self, project_id: str) -> Project:
        record = self._records.get(project_id)
        if record is None:
            raise ProjectNotFoundError(project_id)
        return Project.model_validate(record)

    async def update_project(self, project_id: str, data: dict[str, Any]) -> Project:
        record = self._records.get(project_id)
        if record is None:
            raise ProjectNotFoundError(project_id)
        project = _apply_update(record, data)
        self._records[project_id] = project.to_record()
        return project


class JsonProjectStore:
    """
    Projects kept in a single JSON file.

    File format::

        {"projects": [{"id": "p1", "title": "...", "links": {...}}, ...]}

    Every update rewrites the file atomically via a temp file.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            raise StoreError(f"Failed to read projects from {self.path}: {e}", path=str(self.path)) from e

        records = data.get("projects", []) if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise StoreError(f"Malformed projects file {self.path}", path=str(self.path))
        return [r for r in records if isinstance(r, dict)]

    def _write(self, records: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        temp_path = self.path.with_suffix(".tmp")
        try:
            temp_path.write_text(json.dumps({"projects": records}, indent=2))
            temp_path.replace(self.path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StoreError(f"Failed to write projects to {self.path}: {e}", path=str(self.path)) from e

    async def list_projects(self) -> list[Project]:
        projects = []
        for record in self._read():
            try:
                projects.append(Project.model_validate(record))
            except ValidationError as e:
                logger.warning("Skipping invalid project record %s: %s", record.get("id"), e)
        return projects

    async def get_project(self, project_id: str) -> Project:
        for record in self._read():
            if str(record.get("id")) == project_id:
                return Project.model_validate(record)
        raise ProjectNotFoundError(project_id)

    async def update_project(self, project_id: str, data: dict[str, Any]) -> Project:
        records = self._read()
        for index, record in enumerate(records):
            if str(record.get("id")) == project_id:
                project = _apply_update(record, data)
                records[index] = project.to_record()
                self._write(records)
                logger.debug("Updated project %s in %s", project_id, self.path)
                return project
        raise ProjectNotFoundError(project_id)
