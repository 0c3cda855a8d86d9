"""
GitHub to project-record synchronization.

Example:
    >>> from folio.core.sync import ProjectSyncService
    >>> async with ProjectSyncService(store, config) as service:
    ...     result = await service.sync_project_by_id("p1")
    ...     if not result.success:
    ...         print(result.error)
"""

from folio.core.sync.models import SyncReport, SyncResult
from folio.core.sync.service import ProjectSyncService

__all__ = [
    "ProjectSyncService",
    "SyncReport",
    "SyncResult",
]
