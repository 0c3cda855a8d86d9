"""Tests for fetch_complete_snapshot."""

import pytest

from folio.core.config.models import GitHubConfig
from folio.core.github import fetch_complete_snapshot


class TestFetchCompleteSnapshot:
    """Tests for the concurrent snapshot fetch."""

    @pytest.mark.asyncio
    async def test_complete_snapshot(self, fake_github):
        async with fake_github.client() as client:
            snapshot = await fetch_complete_snapshot(client, "https://github.com/octo/widget")

        assert snapshot is not None
        assert snapshot.repo.full_name == "octo/widget"
        assert snapshot.repository.stargazers_count == 42
        assert list(snapshot.languages) == ["Python", "Shell"]
        assert snapshot.total_commits == 120
        assert snapshot.file_count == 2
        assert snapshot.directory_count == 1
        assert snapshot.readme.content == "# Hello\n"
        assert snapshot.issues.total == 2
        assert snapshot.pull_requests.merged == 1
        assert snapshot.lines_of_code is None

    @pytest.mark.asyncio
    async def test_invalid_url_makes_no_requests(self, fake_github):
        async with fake_github.client() as client:
            snapshot = await fetch_complete_snapshot(client, "https://example.com/octo/widget")

        assert snapshot is None
        assert fake_github.calls == []

    @pytest.mark.asyncio
    async def test_missing_repository_is_none(self, fake_github):
        async with fake_github.client() as client:
            snapshot = await fetch_complete_snapshot(client, "https://github.com/octo/missing")

        assert snapshot is None

    @pytest.mark.asyncio
    async def test_core_failure_is_none(self, fake_github):
        fake_github.failing.add("")
        async with fake_github.client() as client:
            snapshot = await fetch_complete_snapshot(client, "https://github.com/octo/widget")

        assert snapshot is None

    @pytest.mark.asyncio
    async def test_secondary_failures_are_isolated(self, fake_github):
        """A failed secondary request leaves only its own part absent."""
        fake_github.failing.update({"/languages", "/commits", "/issues", "/branches"})
        async with fake_github.client() as client:
            snapshot = await fetch_complete_snapshot(client, "https://github.com/octo/widget")

        assert snapshot is not None
        assert snapshot.languages is None
        assert snapshot.total_commits is None
        assert snapshot.issues is None
        assert snapshot.branches is None
        # Unaffected parts are still present
        assert snapshot.pull_requests is not None
        assert [c.login for c in snapshot.contributors] == ["alice", "bob"]
        assert snapshot.file_tree is not None

    @pytest.mark.asyncio
    async def test_lines_of_code_when_enabled(self, fake_github):
        async with fake_github.client(GitHubConfig(count_lines_of_code=True)) as client:
            snapshot = await fetch_complete_snapshot(client, "https://github.com/octo/widget")

        # The fake answers /contents with 404, so counted files contribute 0
        assert snapshot.lines_of_code == 0
        assert "/repos/octo/widget/contents/src/app.py" in fake_github.calls

    @pytest.mark.asyncio
    async def test_lines_of_code_override(self, fake_github):
        async with fake_github.client(GitHubConfig(count_lines_of_code=True)) as client:
            snapshot = await fetch_complete_snapshot(
                client, "https://github.com/octo/widget", count_lines_of_code=False
            )

        assert snapshot.lines_of_code is None
        assert not any("/contents/" in call for call in fake_github.calls)
