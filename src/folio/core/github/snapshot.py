"""
Complete repository snapshots.

All requests for one repository are issued concurrently and joined with
``asyncio.gather(..., return_exceptions=True)`` so that one failed
secondary request never aborts the rest.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TypeVar

from folio.core.exceptions import RepositoryNotFoundError
from folio.core.github.client import GitHubClient
from folio.core.github.models import RepositorySnapshot, parse_repository_url

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _settled(result: T | BaseException, what: str, full_name: str) -> T | None:
    """Return a gathered result, or None if that request failed."""
    if isinstance(result, BaseException):
        logger.warning("Could not fetch %s for %s: %s", what, full_name, result)
        return None
    return result


async def fetch_complete_snapshot(
    client: GitHubClient,
    url: str,
    *,
    count_lines_of_code: bool | None = None,
) -> RepositorySnapshot | None:
    """
    Fetch everything the project sync needs about one repository.

    Args:
        client: Open GitHub client
        url: Repository web URL
        count_lines_of_code: Override ``github.count_lines_of_code``

    Returns:
        RepositorySnapshot, or None if the URL is invalid or the core
        repository request fails. A failed secondary request leaves its
        part of the snapshot ``None``.
    """
    repo = parse_repository_url(url)
    if repo is None:
        logger.error("Invalid GitHub URL: %s", url)
        return None

    logger.debug("Fetching GitHub data for %s", repo.full_name)
    (
        repository,
        languages,
        contributors,
        latest_release,
        total_commits,
        file_tree,
        branches,
        readme,
        issues,
        pull_requests,
    ) = await asyncio.gather(
        client.get_repository(repo),
        client.get_languages(repo),
        client.get_contributors(repo),
        client.get_latest_release(repo),
        client.get_commit_count(repo),
        client.get_file_tree(repo),
        client.get_branches(repo),
        client.get_readme(repo),
        client.get_issue_stats(repo),
        client.get_pull_request_stats(repo),
        return_exceptions=True,
    )

    if isinstance(repository, BaseException):
        if isinstance(repository, RepositoryNotFoundError):
            logger.warning("Repository %s not found", repo.full_name)
        else:
            logger.error("Error fetching repository %s: %s", repo.full_name, repository)
        return None

    name = repo.full_name
    tree = _settled(file_tree, "file tree", name)

    lines_of_code = None
    if count_lines_of_code is None:
        count_lines_of_code = client.config.count_lines_of_code
    if count_lines_of_code and tree:
        try:
            lines_of_code = await client.count_lines_of_code(repo, tree)
        except Exception as e:
            logger.warning("Could not count lines of code for %s: %s", name, e)

    return RepositorySnapshot(
        repo=repo,
        repository=repository,
        languages=_settled(languages, "languages", name),
        contributors=_settled(contributors, "contributors", name),
        latest_release=_settled(latest_release, "latest release", name),
        total_commits=_settled(total_commits, "commit count", name),
        file_tree=tree,
        branches=_settled(branches, "branches", name),
        readme=_settled(readme, "readme", name),
        issues=_settled(issues, "issues", name),
        pull_requests=_settled(pull_requests, "pull requests", name),
        lines_of_code=lines_of_code,
    )
