"""
Request dependencies for the folio API.

Every route gets its collaborators through ``Depends`` so tests can swap
them with ``app.dependency_overrides``.
"""

from collections.abc import AsyncIterator
from functools import lru_cache
from pathlib import Path

import httpx
from fastapi import Depends

from folio.core.accountability import KVAccountabilityBackend
from folio.core.config import FolioConfig, load_config
from folio.core.github import GitHubClient
from folio.core.kv import KeyValueStore, create_kv_store
from folio.core.projects import JsonProjectStore, ProjectStore
from folio.core.sync import ProjectSyncService


def get_config() -> FolioConfig:
    return load_config()


@lru_cache(maxsize=4)
def _kv_store_for(url: str | None, token: str | None) -> KeyValueStore:
    # One client (and connection pool) per set of credentials
    return create_kv_store(url, token)


def get_kv_store(config: FolioConfig = Depends(get_config)) -> KeyValueStore:
    return _kv_store_for(config.kv.url, config.kv.token)


def get_accountability_backend(
    kv: KeyValueStore = Depends(get_kv_store),
) -> KVAccountabilityBackend:
    return KVAccountabilityBackend(kv)


def get_project_store(config: FolioConfig = Depends(get_config)) -> ProjectStore:
    return JsonProjectStore(Path(config.projects_file))


def get_github_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for GitHub calls; None means the real network."""
    return None


def get_integration_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for Beeminder and Focusmate calls; None means the real network."""
    return None


async def get_sync_service(
    store: ProjectStore = Depends(get_project_store),
    config: FolioConfig = Depends(get_config),
    transport: httpx.AsyncBaseTransport | None = Depends(get_github_transport),
) -> AsyncIterator[ProjectSyncService]:
    github = GitHubClient(config.github, transport=transport)
    try:
        yield ProjectSyncService(store, config, github)
    finally:
        await github.aclose()
