"""
Project reconciliation.

``build_project_update`` projects a repository snapshot onto an existing
project record. It is a pure function of (record, snapshot, timestamp):
syncing twice against unchanged upstream data yields the same record
apart from ``lastGitHubSync``.

Field policy:
    fill-if-empty   description, shortDescription, techStack
    overwrite       links.githubStats, projectDetails sync fields
    keep-if-absent  contributors, languages, latestRelease, branches,
                    fileTree, readme, counts
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from folio.core.github.models import RepositorySnapshot
from folio.core.projects.models import (
    BranchRecord,
    ContributorRecord,
    FileTreeRecord,
    GitHubStats,
    IssueAggregate,
    LatestRelease,
    Project,
    PullRequestAggregate,
    ReadmeRecord,
    TechStackEntry,
    TopicRecord,
)

DEFAULT_CONTRIBUTOR_LIMIT = 10
DEFAULT_SHORT_DESCRIPTION_LENGTH = 150


def truncate_description(text: str, length: int = DEFAULT_SHORT_DESCRIPTION_LENGTH) -> str:
    """
    Cut ``text`` to ``length`` characters, appending "..." when cut.

    Example:
        >>> truncate_description("abcdef", 3)
        'abc...'
    """
    if len(text) <= length:
        return text
    return text[:length] + "..."


def _details_update(snapshot: RepositorySnapshot, contributor_limit: int) -> dict[str, Any]:
    repository = snapshot.repository
    update: dict[str, Any] = {
        "repository_size": repository.size,
        "default_branch": repository.default_branch,
        "is_archived": repository.archived,
        "is_fork": repository.fork,
        "license": repository.license.name if repository.license else None,
        "topics": [TopicRecord(topic=t) for t in repository.topics],
        "created_at": repository.created_at,
        "homepage": repository.homepage,
    }

    if snapshot.contributors is not None:
        update["contributors"] = [
            ContributorRecord(
                name=c.login,
                contributions=c.contributions,
                github_url=c.html_url,
                avatar_url=c.avatar_url,
            )
            for c in snapshot.contributors[:contributor_limit]
        ]
    if snapshot.languages is not None:
        update["languages"] = dict(snapshot.languages)

    if snapshot.readme is not None:
        update["readme"] = ReadmeRecord(
            content=snapshot.readme.content, is_markdown=snapshot.readme.is_markdown
        )
    if snapshot.total_commits is not None:
        update["total_commits"] = snapshot.total_commits
    if snapshot.lines_of_code is not None:
        update["lines_of_code"] = snapshot.lines_of_code
    if snapshot.file_tree is not None:
        update["file_count"] = snapshot.file_count
        update["directory_count"] = snapshot.directory_count
        update["file_tree"] = [
            FileTreeRecord(path=e.path, type=e.type, size=e.size, url=e.url)
            for e in snapshot.file_tree
        ]
    if snapshot.issues is not None:
        update["github_issues"] = IssueAggregate(**snapshot.issues.model_dump())
    if snapshot.pull_requests is not None:
        update["github_pull_requests"] = PullRequestAggregate(
            **snapshot.pull_requests.model_dump()
        )
    return update


def build_project_update(
    project: Project,
    snapshot: RepositorySnapshot,
    synced_at: datetime,
    *,
    contributor_limit: int = DEFAULT_CONTRIBUTOR_LIMIT,
    short_description_length: int = DEFAULT_SHORT_DESCRIPTION_LENGTH,
) -> dict[str, Any]:
    """
    Build the partial update to write for ``project``.

    Args:
        project: Current project record
        snapshot: Freshly fetched repository snapshot
        synced_at: Timestamp stored as ``lastGitHubSync``
        contributor_limit: Number of top contributors to keep
        short_description_length: Truncation length for shortDescription

    Returns:
        camelCase, JSON-safe dict of top-level fields to replace
    """
    repository = snapshot.repository

    links = project.links.model_copy(
        update={
            "github_stats": GitHubStats(
                stars=repository.stargazers_count,
                forks=repository.forks_count,
                watchers=repository.watchers_count,
                open_issues=repository.open_issues_count,
                language=repository.language,
                size=repository.size,
                last_updated=repository.updated_at,
            )
        }
    )
    details = project.project_details.model_copy(
        update=_details_update(snapshot, contributor_limit)
    )

    update: dict[str, Any] = {
        "links": links.to_record(),
        "projectDetails": details.to_record(),
        "lastGitHubSync": synced_at.isoformat(),
    }

    if not project.tech_stack and snapshot.languages:
        update["techStack"] = [
            TechStackEntry(technology=lang).to_record() for lang in snapshot.languages
        ]

    upstream_description = repository.description
    if upstream_description:
        if not project.description:
            update["description"] = upstream_description
        if not project.short_description:
            update["shortDescription"] = truncate_description(
                upstream_description, short_description_length
            )

    if snapshot.latest_release is not None:
        release = snapshot.latest_release
        update["latestRelease"] = LatestRelease(
            version=release.tag_name,
            name=release.name,
            published_at=release.published_at,
            description=release.body,
            html_url=release.html_url,
            download_count=release.download_count,
        ).to_record()

    if snapshot.branches is not None:
        update["branches"] = [
            BranchRecord(
                name=b.name,
                protected=b.protected,
                commit_sha=b.commit.sha if b.commit else None,
            ).to_record()
            for b in snapshot.branches
        ]

    return update
