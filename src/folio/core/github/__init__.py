"""
GitHub integration for folio.

Provides URL parsing, typed API models, an async REST client, and the
complete-snapshot fetch used by the project sync.

Example:
    >>> from folio.core.github import GitHubClient, fetch_complete_snapshot
    >>> async with GitHubClient(config.github) as client:
    ...     snapshot = await fetch_complete_snapshot(client, "https://github.com/o/r")
"""

from folio.core.github.client import GitHubClient
from folio.core.github.models import (
    Branch,
    Contributor,
    IssueStats,
    PullRequestStats,
    RateBudget,
    Readme,
    Release,
    RepoInfo,
    Repository,
    RepositoryPreview,
    RepositorySnapshot,
    TreeEntry,
    parse_repository_url,
)
from folio.core.github.snapshot import fetch_complete_snapshot

__all__ = [
    "Branch",
    "Contributor",
    "GitHubClient",
    "IssueStats",
    "PullRequestStats",
    "RateBudget",
    "Readme",
    "Release",
    "RepoInfo",
    "Repository",
    "RepositoryPreview",
    "RepositorySnapshot",
    "TreeEntry",
    "fetch_complete_snapshot",
    "parse_repository_url",
]
