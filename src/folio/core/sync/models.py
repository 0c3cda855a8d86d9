"""
Data models for the project sync.

Defines Pydantic models for per-project results and run reports.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from folio.core.github.models import RateBudget


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SyncResult(_ApiModel):
    """
    Outcome of syncing one project.

    Failures are values, not exceptions: a failed fetch or write becomes
    ``success=False`` with an error message.
    """

    success: bool = Field(description="Whether the project was updated")
    project_id: str | None = Field(default=None, alias="projectId")
    project_title: str | None = Field(default=None, alias="projectTitle")
    error: str | None = Field(default=None, description="Failure reason")
    stars: int | None = Field(default=None, description="Stars after a successful sync")
    forks: int | None = None
    total_commits: int | None = Field(default=None, alias="totalCommits")
    latest_release: str | None = Field(default=None, alias="latestRelease")

    @classmethod
    def failed(cls, project_id: str | None, error: str, title: str | None = None) -> SyncResult:
        return cls(success=False, project_id=project_id, project_title=title, error=error)


class SyncReport(_ApiModel):
    """
    Result of a bulk sync run (scheduled, manual or admin).

    Example:
        >>> report = SyncReport(success=True, results=[])
        >>> report.summary()
        'sync succeeded, 0 processed'
    """

    success: bool = Field(description="False only when the run was aborted")
    results: list[SyncResult] = Field(default_factory=list)
    rate_limit: RateBudget | None = Field(default=None, alias="rateLimit")
    message: str | None = None
    error: str | None = None

    started_at: datetime | None = Field(default=None, alias="startedAt")
    completed_at: datetime | None = Field(default=None, alias="completedAt")

    @property
    def total_processed(self) -> int:
        return len(self.results)

    @property
    def total_success(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def total_errors(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def duration_seconds(self) -> float | None:
        """Calculate run duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def summary(self) -> str:
        """Generate a human-readable summary of the run."""
        if not self.success:
            return f"sync aborted: {self.error or self.message}"

        parts = [f"sync succeeded, {self.total_processed} processed"]
        if self.total_success:
            parts.append(f"{self.total_success} updated")
        if self.total_errors:
            parts.append(f"{self.total_errors} failed")
        if self.message:
            parts.append(self.message)
        return ", ".join(parts)

    def to_response(self) -> dict[str, object]:
        """JSON body for the HTTP layer (camelCase, with totals)."""
        body = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        body["totalProcessed"] = self.total_processed
        body["totalSuccess"] = self.total_success
        body["totalErrors"] = self.total_errors
        return body
