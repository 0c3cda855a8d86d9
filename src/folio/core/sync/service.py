"""
Project sync service.

Pulls repository metadata from GitHub and reconciles it into project
records. Per-project failures are isolated: ``sync_one`` never raises,
and a bulk run always returns one result per project.

Pacing is a fixed policy: projects are synced ``batch_size`` at a time,
concurrently within a batch, with ``batch_delay_seconds`` between
batches and no pause after the last one.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timedelta, timezone

from folio.core.config.models import FolioConfig
from folio.core.github.client import GitHubClient
from folio.core.github.models import RateBudget, RepositoryPreview, parse_repository_url
from folio.core.github.snapshot import fetch_complete_snapshot
from folio.core.projects.models import Project
from folio.core.projects.reconcile import build_project_update
from folio.core.projects.store import ProjectStore
from folio.core.sync.models import SyncReport, SyncResult

logger = logging.getLogger(__name__)

RATE_LIMIT_TOO_LOW = "GitHub API rate limit too low for batch sync"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ProjectSyncService:
    """
    Orchestrates GitHub to project-record syncs.

    Example:
        >>> async with ProjectSyncService(store, config) as service:
        ...     report = await service.run_scheduled()
        ...     print(report.summary())
    """

    def __init__(
        self,
        store: ProjectStore,
        config: FolioConfig | None = None,
        github: GitHubClient | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize the sync service.

        Args:
            store: Project persistence adapter
            config: Configuration (defaults to built-in defaults)
            github: GitHub client; created from ``config.github`` when omitted
            sleep: Coroutine used for the inter-batch pause
            clock: Source of "now" for timestamps and freshness checks
        """
        self.store = store
        self.config = config or FolioConfig()
        self._owns_client = github is None
        self.github = github or GitHubClient(self.config.github)
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or _utcnow

    async def __aenter__(self) -> ProjectSyncService:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.github.aclose()

    # ------------------------------------------------------------------
    # Single project
    # ------------------------------------------------------------------

    async def sync_one(self, project: Project) -> SyncResult:
        """
        Sync one project. Never raises.

        Returns:
            SyncResult with ``success=False`` and an error message on
            a missing or malformed URL, a failed fetch, or a failed write
        """
        url = project.github_url
        if not url:
            return SyncResult.failed(project.id, "No GitHub URL found", project.title)
        if parse_repository_url(url) is None:
            return SyncResult.failed(project.id, "Invalid GitHub URL format", project.title)

        try:
            snapshot = await fetch_complete_snapshot(self.github, url)
            if snapshot is None:
                return SyncResult.failed(project.id, "Failed to fetch GitHub data", project.title)

            update = build_project_update(
                project,
                snapshot,
                self._clock(),
                contributor_limit=self.config.sync.contributor_limit,
                short_description_length=self.config.sync.short_description_length,
            )
            await self.store.update_project(project.id, update)
        except Exception as e:
            logger.error("Error syncing GitHub data for project %s: %s", project.id, e)
            return SyncResult.failed(project.id, str(e) or type(e).__name__, project.title)

        logger.info("Synced project %s from %s", project.id, snapshot.repo.full_name)
        release = snapshot.latest_release
        return SyncResult(
            success=True,
            project_id=project.id,
            project_title=project.title,
            stars=snapshot.repository.stargazers_count,
            forks=snapshot.repository.forks_count,
            total_commits=snapshot.total_commits,
            latest_release=release.tag_name if release else None,
        )

    async def sync_project_by_id(self, project_id: str) -> SyncResult:
        """
        Manually sync one project by id. Not gated on the rate budget.

        Raises:
            ProjectNotFoundError: If no project has this id
        """
        project = await self.store.get_project(project_id)
        return await self.sync_one(project)

    # ------------------------------------------------------------------
    # Bulk
    # ------------------------------------------------------------------

    async def sync_batch(self, projects: Sequence[Project]) -> list[SyncResult]:
        """
        Sync ``projects`` in fixed-size batches.

        Issues exactly ceil(N / batch_size) batches; within a batch the
        projects run concurrently. Results keep input order.
        """
        batch_size = self.config.sync.batch_size
        delay = self.config.sync.batch_delay_seconds
        total_batches = (len(projects) + batch_size - 1) // batch_size

        results: list[SyncResult] = []
        for index, start in enumerate(range(0, len(projects), batch_size), start=1):
            batch = projects[start : start + batch_size]
            logger.debug("Sync batch %d/%d (%d projects)", index, total_batches, len(batch))
            results.extend(await asyncio.gather(*(self.sync_one(p) for p in batch)))

            if start + batch_size < len(projects):
                await self._sleep(delay)
        return results

    async def check_rate_budget(self) -> RateBudget | None:
        """Read the remaining GitHub quota; None if it could not be read."""
        budget = await self.github.get_rate_limit()
        if budget is not None:
            logger.info(
                "GitHub API rate limit: %d/%s remaining, resets at %s",
                budget.remaining,
                budget.limit if budget.limit is not None else "?",
                budget.reset_time.isoformat() if budget.reset_time else "unknown",
            )
        return budget

    def select_candidates(
        self, projects: Sequence[Project], now: datetime | None = None
    ) -> list[Project]:
        """
        Projects due for a scheduled sync.

        A project qualifies when it has a repository URL and has never
        been synced or was last synced before the freshness window.
        """
        now = _as_utc(now or self._clock())
        cutoff = now - timedelta(hours=self.config.sync.freshness_hours)

        candidates = [
            p
            for p in projects
            if p.github_url
            and (p.last_github_sync is None or _as_utc(p.last_github_sync) < cutoff)
        ]
        return candidates[: self.config.sync.max_projects_per_run]

    async def run_scheduled(self, now: datetime | None = None) -> SyncReport:
        """
        Scheduled bulk sync.

        Aborts before any write when the remaining quota is below
        ``rate_limit_threshold``. An unreadable quota does not abort.
        """
        started_at = self._clock()
        logger.info("Starting scheduled GitHub sync")

        budget = await self.check_rate_budget()
        if budget is not None and budget.is_below(self.config.sync.rate_limit_threshold):
            logger.warning(
                "GitHub API rate limit low: %d requests remaining, skipping run",
                budget.remaining,
            )
            return SyncReport(
                success=False,
                error=RATE_LIMIT_TOO_LOW,
                rate_limit=budget,
                started_at=started_at,
                completed_at=self._clock(),
            )

        candidates = self.select_candidates(await self.store.list_projects(), now)
        logger.info("Found %d projects to sync", len(candidates))
        if not candidates:
            return SyncReport(
                success=True,
                message="No projects need syncing",
                rate_limit=budget,
                started_at=started_at,
                completed_at=self._clock(),
            )

        results = await self.sync_batch(candidates)
        report = SyncReport(
            success=True,
            results=results,
            rate_limit=budget,
            started_at=started_at,
            completed_at=self._clock(),
        )
        logger.info(
            "GitHub sync job completed: %d success, %d errors",
            report.total_success,
            report.total_errors,
        )
        return report

    async def sync_all(self, include_rate_limit: bool = False) -> SyncReport:
        """
        Manual bulk sync of every project with a repository URL.

        Uses the same pacing as the scheduled run but no freshness filter
        and no quota gate.
        """
        started_at = self._clock()
        budget = await self.check_rate_budget() if include_rate_limit else None

        projects = [p for p in await self.store.list_projects() if p.github_url]
        if not projects:
            return SyncReport(
                success=True,
                message="No projects with GitHub URLs found",
                rate_limit=budget,
                started_at=started_at,
                completed_at=self._clock(),
            )

        results = await self.sync_batch(projects)
        return SyncReport(
            success=True,
            results=results,
            rate_limit=budget,
            started_at=started_at,
            completed_at=self._clock(),
        )

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    async def preview(self, url: str) -> RepositoryPreview | None:
        """
        Fetch a repository without writing anything.

        Returns:
            RepositoryPreview, or None if the URL is invalid or the fetch failed
        """
        snapshot = await fetch_complete_snapshot(self.github, url, count_lines_of_code=False)
        if snapshot is None:
            return None
        return RepositoryPreview.from_snapshot(snapshot)
