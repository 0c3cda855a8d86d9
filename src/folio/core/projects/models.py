"""
Project record models.

A project record is owned by the content store: authors edit the
descriptive fields, the GitHub sync owns the rest. Records serialise with
camelCase keys (``githubStats``, ``lastGitHubSync``, ...) so the web layer
and the JSON file see the same shape; Python code uses snake_case names.
Unknown keys are preserved round-trip.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RecordModel(BaseModel):
    """Base for persisted records: camelCase aliases, extra keys kept."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_record(self) -> dict[str, object]:
        """Serialise to the persisted (camelCase, JSON-safe) form."""
        return self.model_dump(mode="json", by_alias=True)


class TechStackEntry(RecordModel):
    technology: str


class PublicationInfo(RecordModel):
    title: str | None = None
    venue: str | None = None
    year: int | None = None
    url: str | None = None


class GitHubStats(RecordModel):
    stars: int = 0
    forks: int = 0
    watchers: int = 0
    open_issues: int = 0
    language: str | None = None
    size: int | None = None
    last_updated: str | None = None


class ProjectLinks(RecordModel):
    github_url: str | None = None
    live_url: str | None = None
    github_stats: GitHubStats | None = None


class ContributorRecord(RecordModel):
    name: str
    contributions: int = 0
    github_url: str | None = None
    avatar_url: str | None = None


class FileTreeRecord(RecordModel):
    path: str
    type: str
    size: int | None = None
    url: str | None = None


class TopicRecord(RecordModel):
    topic: str


class ReadmeRecord(RecordModel):
    content: str
    is_markdown: bool = True


class IssueAggregate(RecordModel):
    total: int = 0
    open: int = 0
    closed: int = 0


class PullRequestAggregate(RecordModel):
    total: int = 0
    open: int = 0
    closed: int = 0
    merged: int = 0


class ProjectDetails(RecordModel):
    """Repository-derived details, all written by the sync."""

    readme: ReadmeRecord | None = None
    total_commits: int | None = None
    lines_of_code: int | None = None
    contributors: list[ContributorRecord] = Field(default_factory=list)
    file_count: int | None = None
    directory_count: int | None = None
    repository_size: int | None = None
    default_branch: str | None = None
    is_archived: bool | None = None
    is_fork: bool | None = None
    license: str | None = None
    topics: list[TopicRecord] = Field(default_factory=list)
    created_at: str | None = None
    homepage: str | None = None
    file_tree: list[FileTreeRecord] = Field(default_factory=list)
    languages: dict[str, int] = Field(default_factory=dict)
    github_issues: IssueAggregate | None = None
    github_pull_requests: PullRequestAggregate | None = None


class LatestRelease(RecordModel):
    version: str
    name: str | None = None
    published_at: str | None = None
    description: str | None = None
    html_url: str | None = None
    download_count: int = 0


class BranchRecord(RecordModel):
    name: str
    protected: bool = False
    commit_sha: str | None = None


class Project(RecordModel):
    """
    A portfolio project.

    Example:
        >>> p = Project.model_validate({"id": "p1", "title": "Site",
        ...     "links": {"githubUrl": "https://github.com/o/r"}})
        >>> p.github_url
        'https://github.com/o/r'
    """

    id: str
    title: str = ""

    # Author-entered; the sync only fills these when empty
    description: str | None = None
    short_description: str | None = None
    tech_stack: list[TechStackEntry] = Field(default_factory=list)
    display_order: int | None = None
    publication: PublicationInfo | None = None

    links: ProjectLinks = Field(default_factory=ProjectLinks)
    project_details: ProjectDetails = Field(default_factory=ProjectDetails)
    latest_release: LatestRelease | None = None
    branches: list[BranchRecord] | None = None
    last_github_sync: datetime | None = Field(default=None, alias="lastGitHubSync")

    @property
    def github_url(self) -> str | None:
        return self.links.github_url or None
