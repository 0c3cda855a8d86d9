"""
Pytest configuration and shared fixtures.

Provides a fake GitHub REST API (served through ``httpx.MockTransport``),
sample project records, in-memory stores and config isolation.
"""

import json
import re
from datetime import datetime, timezone
from typing import Any

import httpx
import pytest

from folio.core.config import FolioConfig, SyncConfig, clear_cache
from folio.core.config.models import GitHubConfig
from folio.core.github import GitHubClient
from folio.core.kv import MemoryKeyValueStore
from folio.core.projects import InMemoryProjectStore, Project

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

_REPO_PATH_RE = re.compile(r"^/repos/([^/]+)/([^/]+)(/.*)?$")


# ==============================================================================
# Config Isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep tests away from the real user config, env files and env vars."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for var in (
        "GITHUB_TOKEN",
        "CRON_SECRET",
        "UPSTASH_REDIS_REST_URL",
        "UPSTASH_REDIS_REST_TOKEN",
        "REDIS_KV_REST_API_URL",
        "REDIS_KV_REST_API_TOKEN",
        "BEEMINDER_USERNAME",
        "BEEMINDER_AUTH_TOKEN",
        "FOCUSMATE_API_KEY",
        "FOLIO_PROJECTS_FILE",
        "FOLIO_SYNC_BATCH_SIZE",
        "FOLIO_SYNC_BATCH_DELAY",
        "FOLIO_API_BASE_URL",
    ):
        monkeypatch.delenv(var, raising=False)
    clear_cache()
    yield
    clear_cache()


# ==============================================================================
# Fake GitHub API
# ==============================================================================


def repository_json(full_name: str, **overrides: Any) -> dict[str, Any]:
    """A repository payload as ``GET /repos/{owner}/{name}`` returns it."""
    owner, name = full_name.split("/")
    data = {
        "name": name,
        "full_name": full_name,
        "description": f"The {name} project",
        "html_url": f"https://github.com/{full_name}",
        "homepage": None,
        "size": 2048,
        "stargazers_count": 42,
        "watchers_count": 42,
        "forks_count": 7,
        "open_issues_count": 3,
        "language": "Python",
        "topics": ["cli", "sync"],
        "license": {"key": "mit", "name": "MIT License", "spdx_id": "MIT"},
        "default_branch": "main",
        "archived": False,
        "fork": False,
        "created_at": "2022-01-01T00:00:00Z",
        "updated_at": "2024-05-01T00:00:00Z",
        "pushed_at": "2024-05-01T00:00:00Z",
    }
    data.update(overrides)
    return data


class FakeGitHub:
    """
    In-process stand-in for the GitHub REST API.

    Repositories are registered with ``add_repo``. Every request path is
    recorded in ``calls``; suffixes listed in ``failing`` answer 500.
    """

    def __init__(self) -> None:
        self.repos: dict[str, dict[str, Any]] = {}
        self.calls: list[str] = []
        self.failing: set[str] = set()
        self.rate_remaining: int | None = 5000

    def add_repo(
        self,
        full_name: str,
        *,
        languages: dict[str, int] | None = None,
        contributors: list[dict[str, Any]] | None = None,
        release: dict[str, Any] | None = None,
        commits: int = 120,
        tree: list[dict[str, Any]] | None = None,
        branches: list[dict[str, Any]] | None = None,
        readme: str | None = "# Hello\n",
        issues: dict[str, list[dict[str, Any]]] | None = None,
        pulls: dict[str, list[dict[str, Any]]] | None = None,
        **repository: Any,
    ) -> None:
        self.repos[full_name] = {
            "repository": repository_json(full_name, **repository),
            "languages": {"Python": 9000, "Shell": 100} if languages is None else languages,
            "contributors": (
                [{"login": "alice", "contributions": 90}, {"login": "bob", "contributions": 30}]
                if contributors is None
                else contributors
            ),
            "release": release,
            "commits": commits,
            "tree": (
                [
                    {"path": "src", "type": "tree"},
                    {"path": "src/app.py", "type": "blob", "size": 120},
                    {"path": "README.md", "type": "blob", "size": 20},
                ]
                if tree is None
                else tree
            ),
            "branches": (
                [{"name": "main", "protected": True, "commit": {"sha": "abc123"}}]
                if branches is None
                else branches
            ),
            "readme": readme,
            "issues": issues or {"open": [{"number": 1}], "closed": [{"number": 2}]},
            "pulls": pulls or {"open": [], "closed": [{"number": 3, "merged_at": "2024-01-01"}]},
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append(path)

        if path == "/rate_limit":
            if self.rate_remaining is None:
                return httpx.Response(500, json={"message": "boom"})
            core = {"limit": 5000, "remaining": self.rate_remaining, "reset": 1717243200}
            return httpx.Response(200, json={"resources": {"core": core}, "rate": core})

        match = _REPO_PATH_RE.match(path)
        if not match:
            return httpx.Response(404, json={"message": "Not Found"})
        full_name = f"{match.group(1)}/{match.group(2)}"
        suffix = match.group(3) or ""
        repo = self.repos.get(full_name)
        if repo is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if any(suffix.startswith(f) for f in self.failing if f) or ("" in self.failing and not suffix):
            return httpx.Response(500, json={"message": "Server Error"})

        state = request.url.params.get("state", "open")
        if suffix == "":
            return httpx.Response(200, json=repo["repository"])
        if suffix == "/languages":
            return httpx.Response(200, json=repo["languages"])
        if suffix == "/contributors":
            return httpx.Response(200, json=repo["contributors"])
        if suffix == "/releases/latest":
            if repo["release"] is None:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, json=repo["release"])
        if suffix == "/commits":
            base = f"https://api.github.com/repos/{full_name}/commits"
            link = (
                f'<{base}?per_page=1&page=2>; rel="next", '
                f'<{base}?per_page=1&page={repo["commits"]}>; rel="last"'
            )
            return httpx.Response(200, json=[{"sha": "x"}], headers={"link": link})
        if suffix.startswith("/git/trees/"):
            return httpx.Response(200, json={"tree": repo["tree"], "truncated": False})
        if suffix == "/branches":
            return httpx.Response(200, json=repo["branches"])
        if suffix == "/readme":
            if repo["readme"] is None:
                return httpx.Response(404, json={"message": "Not Found"})
            if "raw" in request.headers.get("accept", ""):
                return httpx.Response(200, text=repo["readme"])
            return httpx.Response(200, json={"name": "README.md"})
        if suffix == "/issues":
            return httpx.Response(200, json=repo["issues"].get(state, []))
        if suffix == "/pulls":
            return httpx.Response(200, json=repo["pulls"].get(state, []))
        return httpx.Response(404, json={"message": "Not Found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self, config: GitHubConfig | None = None) -> GitHubClient:
        return GitHubClient(config or GitHubConfig(), transport=self.transport())


@pytest.fixture
def fake_github():
    """Fake GitHub API with one registered repository, ``octo/widget``."""
    fake = FakeGitHub()
    fake.add_repo("octo/widget")
    return fake


# ==============================================================================
# Projects and Stores
# ==============================================================================


def make_project(project_id: str, url: str | None = None, **fields: Any) -> Project:
    record: dict[str, Any] = {"id": project_id, "title": f"Project {project_id}"}
    if url is not None:
        record["links"] = {"githubUrl": url}
    record.update(fields)
    return Project.model_validate(record)


@pytest.fixture
def widget_project():
    return make_project("p1", "https://github.com/octo/widget")


@pytest.fixture
def project_store(widget_project):
    return InMemoryProjectStore([widget_project])


@pytest.fixture
def projects_file(tmp_path, widget_project):
    """A projects JSON file holding ``widget_project`` and one project without a URL."""
    path = tmp_path / "projects.json"
    records = [widget_project.to_record(), make_project("p2").to_record()]
    path.write_text(json.dumps({"projects": records}))
    return path


@pytest.fixture
def memory_kv():
    return MemoryKeyValueStore()


@pytest.fixture
def fast_config():
    """Default config with no inter-batch delay."""
    return FolioConfig(sync=SyncConfig(batch_delay_seconds=0.0))


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
