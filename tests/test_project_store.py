"""Tests for project persistence adapters."""

import json

import pytest
from conftest import make_project

from folio.core.exceptions import ProjectNotFoundError, StoreError
from folio.core.projects import InMemoryProjectStore, JsonProjectStore


class TestJsonProjectStore:
    """Tests for the JSON file store."""

    @pytest.mark.asyncio
    async def test_list_and_get(self, projects_file):
        store = JsonProjectStore(projects_file)

        projects = await store.list_projects()

        assert [p.id for p in projects] == ["p1", "p2"]
        assert (await store.get_project("p1")).github_url == "https://github.com/octo/widget"
        assert (await store.get_project("p2")).github_url is None

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, tmp_path):
        store = JsonProjectStore(tmp_path / "none.json")

        assert await store.list_projects() == []
        with pytest.raises(ProjectNotFoundError):
            await store.get_project("p1")

    @pytest.mark.asyncio
    async def test_bare_list_is_accepted(self, tmp_path):
        path = tmp_path / "projects.json"
        path.write_text(json.dumps([{"id": "a", "title": "A"}, "junk"]))

        assert [p.id for p in await JsonProjectStore(path).list_projects()] == ["a"]

    @pytest.mark.asyncio
    async def test_malformed_file(self, tmp_path):
        path = tmp_path / "projects.json"
        path.write_text("{broken")

        with pytest.raises(StoreError):
            await JsonProjectStore(path).list_projects()

        path.write_text(json.dumps({"projects": {"id": "a"}}))
        with pytest.raises(StoreError):
            await JsonProjectStore(path).list_projects()

    @pytest.mark.asyncio
    async def test_invalid_records_are_skipped(self, tmp_path):
        path = tmp_path / "projects.json"
        path.write_text(json.dumps({"projects": [{"title": "no id"}, {"id": "ok"}]}))

        assert [p.id for p in await JsonProjectStore(path).list_projects()] == ["ok"]

    @pytest.mark.asyncio
    async def test_update_is_partial_and_persisted(self, projects_file):
        store = JsonProjectStore(projects_file)

        updated = await store.update_project("p1", {"lastGitHubSync": "2024-06-01T12:00:00+00:00"})

        assert updated.title == "Project p1"
        assert updated.last_github_sync is not None
        data = json.loads(projects_file.read_text())
        assert data["projects"][0]["lastGitHubSync"].startswith("2024-06-01T12:00:00")
        assert data["projects"][1]["id"] == "p2"
        assert not projects_file.with_suffix(".tmp").exists()

    @pytest.mark.asyncio
    async def test_update_keeps_unknown_keys(self, tmp_path):
        path = tmp_path / "projects.json"
        path.write_text(json.dumps({"projects": [{"id": "a", "featured": True}]}))
        store = JsonProjectStore(path)

        await store.update_project("a", {"title": "Renamed"})

        record = json.loads(path.read_text())["projects"][0]
        assert record["featured"] is True
        assert record["title"] == "Renamed"

    @pytest.mark.asyncio
    async def test_update_unknown_project(self, projects_file):
        with pytest.raises(ProjectNotFoundError):
            await JsonProjectStore(projects_file).update_project("nope", {"title": "x"})

    @pytest.mark.asyncio
    async def test_invalid_update_is_rejected(self, projects_file):
        store = JsonProjectStore(projects_file)
        before = projects_file.read_text()

        with pytest.raises(StoreError):
            await store.update_project("p1", {"links": "not a mapping"})

        assert projects_file.read_text() == before

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path, widget_project):
        path = tmp_path / "data" / "projects.json"
        store = JsonProjectStore(path)
        store._write([widget_project.to_record()])

        assert (await store.get_project("p1")).title == "Project p1"


class TestInMemoryProjectStore:
    @pytest.mark.asyncio
    async def test_records_are_copied(self):
        project = make_project("a", "https://github.com/octo/widget")
        store = InMemoryProjectStore([project])

        loaded = await store.get_project("a")
        loaded.title = "Changed locally"

        assert (await store.get_project("a")).title == "Project a"

    @pytest.mark.asyncio
    async def test_update(self):
        store = InMemoryProjectStore([make_project("a")])

        await store.update_project("a", {"description": "Filled"})

        assert (await store.get_project("a")).description == "Filled"
        with pytest.raises(ProjectNotFoundError):
            await store.update_project("b", {})
