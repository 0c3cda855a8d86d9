"""
GitHub data models for folio.

Pydantic models for the subset of the GitHub REST API that the project
sync reads. Every field the API may omit is optional; unknown keys are
ignored so upstream additions never break parsing.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, computed_field

# https://github.com/<owner>/<name>, optionally www., .git, trailing path
_REPOSITORY_URL_RE = re.compile(
    r"^https?://(?:www\.)?github\.com/([^/\s]+)/([^/\s]+?)(?:\.git)?(?:/.*)?$"
)


class RepoInfo(BaseModel):
    """
    GitHub repository identifier.

    Example:
        >>> RepoInfo.from_url("https://github.com/user/repo.git")
        RepoInfo(owner='user', name='repo')
        >>> RepoInfo.from_url("https://github.com/user/repo/tree/main/src")
        RepoInfo(owner='user', name='repo')
    """

    owner: str = Field(..., description="Repository owner (user or organization)")
    name: str = Field(..., description="Repository name")

    @computed_field
    @property
    def full_name(self) -> str:
        """Full repository name (owner/name)."""
        return f"{self.owner}/{self.name}"

    @computed_field
    @property
    def url(self) -> str:
        """GitHub URL for the repository."""
        return f"https://github.com/{self.owner}/{self.name}"

    @classmethod
    def from_url(cls, url: str | None) -> RepoInfo | None:
        """
        Parse repository info from a GitHub web URL.

        Handles formats:
        - https://github.com/user/repo
        - https://github.com/user/repo/
        - https://github.com/user/repo.git
        - https://www.github.com/user/repo/tree/main/docs

        Args:
            url: Repository URL (any value is accepted)

        Returns:
            RepoInfo or None if the value is not a GitHub repository URL
        """
        if not isinstance(url, str):
            return None

        match = _REPOSITORY_URL_RE.match(url.strip())
        if not match:
            return None

        owner, name = match.group(1), match.group(2)
        if not name or name in (".", ".."):
            return None
        return cls(owner=owner, name=name)


def parse_repository_url(url: str | None) -> RepoInfo | None:
    """Extract (owner, name) from a repository URL; never raises."""
    return RepoInfo.from_url(url)


class _GitHubModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class License(_GitHubModel):
    key: str | None = None
    name: str | None = None
    spdx_id: str | None = None


class Repository(_GitHubModel):
    """Core repository metadata from ``GET /repos/{owner}/{name}``."""

    name: str
    full_name: str | None = None
    description: str | None = None
    html_url: str | None = None
    homepage: str | None = None
    size: int | None = None
    stargazers_count: int = 0
    watchers_count: int = 0
    forks_count: int = 0
    subscribers_count: int | None = None
    open_issues_count: int = 0
    language: str | None = None
    topics: list[str] = Field(default_factory=list)
    license: License | None = None
    default_branch: str | None = None
    archived: bool = False
    fork: bool = False
    created_at: str | None = None
    updated_at: str | None = None
    pushed_at: str | None = None


class Contributor(_GitHubModel):
    login: str
    contributions: int = 0
    html_url: str | None = None
    avatar_url: str | None = None
    type: str | None = None


class ReleaseAsset(_GitHubModel):
    name: str | None = None
    download_count: int = 0
    size: int | None = None
    browser_download_url: str | None = None


class Release(_GitHubModel):
    tag_name: str
    name: str | None = None
    body: str | None = None
    draft: bool = False
    prerelease: bool = False
    published_at: str | None = None
    html_url: str | None = None
    assets: list[ReleaseAsset] = Field(default_factory=list)

    @property
    def download_count(self) -> int:
        """Total downloads across all release assets."""
        return sum(asset.download_count for asset in self.assets)


class TreeEntry(_GitHubModel):
    path: str
    type: str = Field(..., description="blob, tree or commit (submodule)")
    size: int | None = None
    url: str | None = None


class BranchCommit(_GitHubModel):
    sha: str | None = None


class Branch(_GitHubModel):
    name: str
    protected: bool = False
    commit: BranchCommit | None = None


class Readme(BaseModel):
    content: str
    is_markdown: bool


class IssueStats(BaseModel):
    """
    Issue aggregates sampled from the most recently updated issues.

    Pull requests that the issues endpoint also returns are excluded.
    """

    total: int = 0
    open: int = 0
    closed: int = 0


class PullRequestStats(BaseModel):
    total: int = 0
    open: int = 0
    closed: int = 0
    merged: int = 0


class RateBudget(BaseModel):
    """Remaining core API quota as reported by ``GET /rate_limit``."""

    limit: int | None = None
    remaining: int
    reset: int | None = Field(default=None, description="Epoch seconds of the next reset")

    @property
    def reset_time(self) -> datetime | None:
        if self.reset is None:
            return None
        return datetime.fromtimestamp(self.reset, tz=timezone.utc)

    def is_below(self, threshold: int) -> bool:
        return self.remaining < threshold


class RepositorySnapshot(BaseModel):
    """
    Point-in-time read of a repository's public metadata.

    Built fresh on every sync and projected into a project record; never
    stored as-is. ``None`` on an optional part means "not present", never
    "failed".
    """

    repo: RepoInfo
    repository: Repository
    languages: dict[str, int] | None = None
    contributors: list[Contributor] | None = None
    latest_release: Release | None = None
    total_commits: int | None = None
    file_tree: list[TreeEntry] | None = None
    branches: list[Branch] | None = None
    readme: Readme | None = None
    issues: IssueStats | None = None
    pull_requests: PullRequestStats | None = None
    lines_of_code: int | None = None

    @property
    def file_count(self) -> int | None:
        if self.file_tree is None:
            return None
        return sum(1 for entry in self.file_tree if entry.type == "blob")

    @property
    def directory_count(self) -> int | None:
        if self.file_tree is None:
            return None
        return sum(1 for entry in self.file_tree if entry.type == "tree")


class RepositoryPreview(BaseModel):
    """Summary returned when a repository URL is fetched without persisting."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    full_name: str | None = Field(default=None, alias="fullName")
    description: str | None = None
    stars: int = 0
    forks: int = 0
    language: str | None = None
    languages: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    license: str | None = None
    total_commits: int = Field(default=0, alias="totalCommits")
    contributors: list[dict[str, object]] = Field(default_factory=list)
    latest_release: str | None = Field(default=None, alias="latestRelease")
    file_count: int | None = Field(default=None, alias="fileCount")
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")

    @classmethod
    def from_snapshot(cls, snapshot: RepositorySnapshot) -> RepositoryPreview:
        repository = snapshot.repository
        return cls(
            name=repository.name,
            full_name=repository.full_name or snapshot.repo.full_name,
            description=repository.description,
            stars=repository.stargazers_count,
            forks=repository.forks_count,
            language=repository.language,
            languages=list(snapshot.languages or {}),
            topics=repository.topics,
            license=repository.license.name if repository.license else None,
            total_commits=snapshot.total_commits or 0,
            contributors=[
                {"login": c.login, "contributions": c.contributions}
                for c in (snapshot.contributors or [])[:5]
            ],
            latest_release=snapshot.latest_release.tag_name if snapshot.latest_release else None,
            file_count=snapshot.file_count,
            created_at=repository.created_at,
            updated_at=repository.updated_at,
        )
