"""
Tests for the folio HTTP API.

Collaborators are swapped through ``app.dependency_overrides``: an
in-memory key-value store, an in-memory project store and the fake
GitHub transport from conftest.
"""

import httpx
import pytest
from conftest import make_project
from fastapi.testclient import TestClient

from folio.api.app import app
from folio.api.deps import (
    get_config,
    get_github_transport,
    get_integration_transport,
    get_kv_store,
    get_project_store,
)
from folio.core.config import CronConfig, FolioConfig, IntegrationsConfig
from folio.core.exceptions import UpstreamError
from folio.core.kv import MemoryKeyValueStore
from folio.core.projects import InMemoryProjectStore
from folio.core.sync.service import RATE_LIMIT_TOO_LOW

GOAL = {
    "id": "g1",
    "title": "Finish draft",
    "status": "active",
    "priority": "high",
    "goalType": "open_ended",
    "createdAt": "2024-06-01T09:00:00Z",
    "updatedAt": "2024-06-01T09:00:00Z",
}


class Overrides:
    """Holds the objects injected into the app for one test."""

    def __init__(self, fake_github) -> None:
        self.config = FolioConfig()
        self.kv = MemoryKeyValueStore()
        self.store = InMemoryProjectStore(
            [
                make_project("p1", "https://github.com/octo/widget"),
                make_project("p2"),
                make_project("p3", "https://gitlab.com/octo/widget"),
            ]
        )
        self.fake_github = fake_github
        self.integration_transport: httpx.MockTransport | None = None

    def install(self) -> None:
        app.dependency_overrides[get_config] = lambda: self.config
        app.dependency_overrides[get_kv_store] = lambda: self.kv
        app.dependency_overrides[get_project_store] = lambda: self.store
        app.dependency_overrides[get_github_transport] = self.fake_github.transport
        app.dependency_overrides[get_integration_transport] = lambda: self.integration_transport


@pytest.fixture
def overrides(fake_github):
    state = Overrides(fake_github)
    state.install()
    yield state
    app.dependency_overrides.clear()


@pytest.fixture
def client(overrides):
    return TestClient(app, raise_server_exceptions=False)


class TestHealth:
    def test_root(self, client):
        assert client.get("/").json() == {"status": "ok", "message": "Folio API"}

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestGoalsRoutes:
    """Tests for /api/goals."""

    def test_empty(self, client):
        response = client.get("/api/goals")

        assert response.status_code == 200
        assert response.json() == {"success": True, "goals": []}

    def test_save_then_load(self, client):
        response = client.post("/api/goals", json={"goals": [GOAL]})
        assert response.json() == {"success": True}

        goals = client.get("/api/goals").json()["goals"]
        assert goals[0]["id"] == "g1"
        assert goals[0]["goalType"] == "open_ended"

    def test_invalid_body(self, client):
        response = client.post("/api/goals", json={"goals": [{"title": "no id"}]})

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_save_failure(self, client, overrides):
        class ReadOnlyKV(MemoryKeyValueStore):
            async def set(self, key, value):
                raise UpstreamError("kv", "read only")

        overrides.kv = ReadOnlyKV()

        response = client.post("/api/goals", json={"goals": [GOAL]})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to save goals"}


class TestSessionsRoutes:
    def test_active_sessions_are_not_stored(self, client):
        sessions = [
            {"id": "s1", "sessionTitle": "Done", "startTime": "2024-06-01T09:00:00Z", "endTime": "2024-06-01T09:25:00Z"},
            {"id": "s2", "sessionTitle": "Live", "startTime": "2024-06-01T10:00:00Z", "isActive": True},
        ]

        assert client.post("/api/sessions", json={"sessions": sessions}).json() == {"success": True}

        stored = client.get("/api/sessions").json()["sessions"]
        assert [s["id"] for s in stored] == ["s1"]


class TestKVHealth:
    def test_healthy(self, client):
        assert client.get("/api/kv/health").json() == {
            "success": True,
            "message": "Key-value connection successful",
            "configured": False,
        }

    def test_unhealthy(self, client, overrides):
        class DownKV(MemoryKeyValueStore):
            async def ping(self):
                return False

        overrides.kv = DownKV()

        response = client.get("/api/kv/health")

        assert response.status_code == 500
        assert response.json()["success"] is False


class TestSyncRoutes:
    """Tests for the manual sync endpoints."""

    def test_sync_all(self, client, overrides):
        body = client.get("/api/sync-github").json()

        assert body["success"] is True
        assert body["totalProcessed"] == 2
        assert body["totalSuccess"] == 1
        assert body["totalErrors"] == 1
        assert "rateLimit" not in body

    def test_sync_all_with_rate_limit(self, client):
        body = client.get("/api/sync-github", params={"rateLimit": "true"}).json()

        assert body["rateLimit"]["remaining"] == 5000

    def test_sync_one_by_query(self, client):
        body = client.get("/api/sync-github", params={"projectId": "p1"}).json()

        assert body["results"][0]["projectId"] == "p1"
        assert body["results"][0]["stars"] == 42

    def test_sync_unknown_project_by_query(self, client):
        body = client.get("/api/sync-github", params={"projectId": "nope"}).json()

        assert body["success"] is True
        assert body["message"] == "Project not found"
        assert body["results"] == []

    def test_post_requires_a_field(self, client):
        response = client.post("/api/sync-github", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "Either githubUrl or projectId is required"

    def test_post_preview(self, client, overrides):
        response = client.post("/api/sync-github", json={"githubUrl": "https://github.com/octo/widget"})

        body = response.json()
        assert body["success"] is True
        assert body["githubData"]["fullName"] == "octo/widget"
        assert body["githubData"]["stars"] == 42
        assert overrides.store._records["p1"].get("lastGitHubSync") is None

    @pytest.mark.parametrize(
        ("url", "status", "error"),
        [
            ("https://gitlab.com/octo/widget", 400, "Invalid GitHub URL format"),
            ("https://github.com/octo/missing", 404, "Failed to fetch GitHub data"),
        ],
    )
    def test_post_preview_errors(self, client, url, status, error):
        response = client.post("/api/sync-github", json={"githubUrl": url})

        assert response.status_code == status
        assert response.json() == {"success": False, "error": error}

    def test_post_project_id(self, client):
        body = client.post("/api/sync-github", json={"projectId": "p1"}).json()

        assert body["success"] is True
        assert body["totalCommits"] == 120

    def test_post_unknown_project(self, client):
        response = client.post("/api/sync-github", json={"projectId": "nope"})

        assert response.status_code == 404

    @pytest.mark.parametrize(
        ("query", "status", "error"),
        [
            ({}, 400, "Project ID required"),
            ({"projectId": "p2"}, 400, "No GitHub URL found"),
            ({"projectId": "p3"}, 400, "Invalid GitHub URL format"),
        ],
    )
    def test_single_sync_errors(self, client, query, status, error):
        response = client.post("/api/sync-github-single", params=query)

        assert response.status_code == status
        assert response.json() == {"error": error}

    def test_single_sync_unknown_project(self, client):
        response = client.post("/api/sync-github-single", params={"projectId": "nope"})

        assert response.status_code == 404
        assert "nope" in response.json()["error"]

    def test_single_sync_fetch_failure(self, client, overrides):
        overrides.store = InMemoryProjectStore([make_project("gone", "https://github.com/octo/missing")])

        response = client.post("/api/sync-github-single", params={"projectId": "gone"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch GitHub data"}

    def test_single_sync(self, client):
        response = client.post("/api/sync-github-single", params={"projectId": "p1"})

        assert response.status_code == 200
        assert response.json()["forks"] == 7

    def test_bulk_sync(self, client):
        body = client.post("/api/admin/bulk-sync").json()

        assert body["totalProcessed"] == 2

    def test_bulk_sync_failure(self, client, overrides):
        class BrokenStore(InMemoryProjectStore):
            async def list_projects(self):
                raise RuntimeError("store offline")

        overrides.store = BrokenStore()

        response = client.post("/api/admin/bulk-sync")

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "store offline",
            "results": [],
            "totalProcessed": 0,
            "totalSuccess": 0,
            "totalErrors": 1,
        }


class TestCronRoute:
    """Tests for the scheduled sync endpoint."""

    def test_secret_not_configured(self, client):
        response = client.get("/api/cron/sync-github", headers={"Authorization": "Bearer x"})

        assert response.status_code == 500
        assert response.json() == {"error": "Cron secret not configured"}

    @pytest.mark.parametrize("header", [None, "Bearer wrong", "s3cret"])
    def test_bad_credentials(self, client, overrides, header):
        overrides.config = FolioConfig(cron=CronConfig(secret="s3cret"))
        headers = {"Authorization": header} if header else {}

        response = client.get("/api/cron/sync-github", headers=headers)

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        assert overrides.fake_github.calls == []

    def test_non_ascii_header_is_unauthorized(self, client, overrides):
        overrides.config = FolioConfig(cron=CronConfig(secret="s3cret"))

        response = client.get(
            "/api/cron/sync-github",
            headers={"Authorization": "Bearer café".encode("latin-1")},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_non_ascii_secret(self, client, overrides):
        overrides.config = FolioConfig(cron=CronConfig(secret="sécret"))

        response = client.get("/api/cron/sync-github", headers={"Authorization": "Bearer wrong"})

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        assert overrides.fake_github.calls == []

    @pytest.mark.parametrize("method", ["GET", "POST"])
    def test_runs_scheduled_sync(self, client, overrides, method):
        overrides.config = FolioConfig(cron=CronConfig(secret="s3cret"))

        response = client.request(
            method, "/api/cron/sync-github", headers={"Authorization": "Bearer s3cret"}
        )

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["totalSuccess"] == 1
        assert body["rateLimit"]["remaining"] == 5000

    def test_low_quota_aborts_with_200(self, client, overrides):
        overrides.config = FolioConfig(cron=CronConfig(secret="s3cret"))
        overrides.fake_github.rate_remaining = 10

        response = client.post("/api/cron/sync-github", headers={"Authorization": "Bearer s3cret"})

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["error"] == RATE_LIMIT_TOO_LOW
        assert overrides.fake_github.calls == ["/rate_limit"]


class TestProjectRoutes:
    def test_list(self, client):
        body = client.get("/api/projects").json()

        assert [p["id"] for p in body["projects"]] == ["p1", "p2", "p3"]

    def test_get(self, client):
        body = client.get("/api/projects/p1").json()

        assert body["project"]["links"]["githubUrl"] == "https://github.com/octo/widget"

    def test_not_found_uses_error_body(self, client):
        response = client.get("/api/projects/nope")

        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "NOT_FOUND"
        assert body["message"] == "Project nope not found"
        assert body["request_id"]


class TestIntegrationRoutes:
    """Tests for the Beeminder and Focusmate proxies."""

    @pytest.fixture
    def configured(self, overrides):
        overrides.config = FolioConfig(
            integrations=IntegrationsConfig(
                beeminder_username="alice",
                beeminder_auth_token="tok",
                focusmate_api_key="fm-key",
            )
        )
        return overrides

    def test_beeminder_not_configured(self, client):
        response = client.get("/api/beeminder/user")

        assert response.status_code == 500
        assert response.json() == {"error": "Beeminder credentials not configured"}

    def test_focusmate_not_configured(self, client):
        response = client.get("/api/focusmate/profile")

        assert response.status_code == 500
        assert response.json() == {"error": "Focusmate API key not configured"}

    def test_beeminder_user_passthrough(self, client, configured):
        configured.integration_transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"username": "alice", "goals": ["writing"]})
        )

        assert client.get("/api/beeminder/user").json() == {"username": "alice", "goals": ["writing"]}

    def test_beeminder_goal_upstream_status(self, client, configured):
        configured.integration_transport = httpx.MockTransport(lambda request: httpx.Response(404))

        response = client.get("/api/beeminder/goals/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "Beeminder API error: 404 Not Found"}

    def test_focusmate_sessions_forward_range(self, client, configured):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(dict(request.url.params))
            return httpx.Response(200, json={"sessions": []})

        configured.integration_transport = httpx.MockTransport(handler)

        response = client.get(
            "/api/focusmate/sessions", params={"start": "2024-01-01T00:00:00Z", "end": "2024-01-31T00:00:00Z"}
        )

        assert response.json() == {"sessions": []}
        assert seen == [{"start": "2024-01-01T00:00:00Z", "end": "2024-01-31T00:00:00Z"}]
