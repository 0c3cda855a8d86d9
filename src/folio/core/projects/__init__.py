"""
Project records and their persistence.

Example:
    >>> from folio.core.projects import JsonProjectStore, build_project_update
    >>> store = JsonProjectStore(Path(".folio/projects.json"))
    >>> project = await store.get_project("p1")
    >>> await store.update_project(project.id, build_project_update(project, snapshot, now))
"""

from folio.core.projects.models import (
    GitHubStats,
    LatestRelease,
    Project,
    ProjectDetails,
    ProjectLinks,
    TechStackEntry,
)
from folio.core.projects.reconcile import build_project_update, truncate_description
from folio.core.projects.store import InMemoryProjectStore, JsonProjectStore, ProjectStore

__all__ = [
    "GitHubStats",
    "InMemoryProjectStore",
    "JsonProjectStore",
    "LatestRelease",
    "Project",
    "ProjectDetails",
    "ProjectLinks",
    "ProjectStore",
    "TechStackEntry",
    "build_project_update",
    "truncate_description",
]
