"""
Persistence backends for the accountability store.

A backend reads and writes whole collections. Two implementations:

* ``KVAccountabilityBackend`` talks to the key-value store directly
  (server side, behind ``/api/goals`` and ``/api/sessions``).
* ``HTTPAccountabilityBackend`` talks to those routes over HTTP (the
  client side of the same contract).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

import httpx

from folio.core.accountability.models import (
    Goal,
    WorkSession,
    dump_collection,
    parse_collection,
)
from folio.core.exceptions import FolioError, PersistenceError
from folio.core.kv.store import KeyValueStore

logger = logging.getLogger(__name__)

GOALS_KEY = "accountability:goals"
SESSIONS_KEY = "accountability:sessions"
LAST_SYNC_KEY = "accountability:last_sync"


@runtime_checkable
class AccountabilityBackend(Protocol):
    async def load_goals(self) -> list[Goal]: ...

    async def save_goals(self, goals: Sequence[Goal]) -> None: ...

    async def load_sessions(self) -> list[WorkSession]: ...

    async def save_sessions(self, sessions: Sequence[WorkSession]) -> None: ...


class KVAccountabilityBackend:
    """
    Collections stored under fixed keys in a key-value store.

    Writes raise ``PersistenceError``. Reads are lenient: a failed read
    is logged and yields an empty collection.
    """

    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    async def load_goals(self) -> list[Goal]:
        try:
            raw = await self.kv.get(GOALS_KEY)
        except FolioError as e:
            logger.error("Failed to load goals from key-value store: %s", e)
            return []
        return parse_collection(Goal, raw)

    async def save_goals(self, goals: Sequence[Goal]) -> None:
        try:
            await self.kv.set(GOALS_KEY, dump_collection(goals))
            await self.kv.set(LAST_SYNC_KEY, int(time.time() * 1000))
        except FolioError as e:
            logger.error("Failed to save goals to key-value store: %s", e)
            raise PersistenceError(f"Failed to save goals: {e}") from e

    async def load_sessions(self) -> list[WorkSession]:
        try:
            raw = await self.kv.get(SESSIONS_KEY)
        except FolioError as e:
            logger.error("Failed to load sessions from key-value store: %s", e)
            return []
        return parse_collection(WorkSession, raw)

    async def save_sessions(self, sessions: Sequence[WorkSession]) -> None:
        """Persist sessions; active (in-flight) sessions are never written."""
        try:
            await self.kv.set(SESSIONS_KEY, dump_collection(s for s in sessions if not s.is_active))
        except FolioError as e:
            logger.error("Failed to save sessions to key-value store: %s", e)
            raise PersistenceError(f"Failed to save sessions: {e}") from e

    async def get_last_sync_time(self) -> int:
        """Epoch milliseconds of the last goals write, 0 if unknown."""
        try:
            value = await self.kv.get(LAST_SYNC_KEY)
        except FolioError as e:
            logger.error("Failed to get last sync time: %s", e)
            return 0
        try:
            return int(value or 0)
        except (TypeError, ValueError):
            return 0

    async def ping(self) -> bool:
        return await self.kv.ping()

    async def clear(self) -> None:
        """Delete both collections and the last-sync marker."""
        try:
            await self.kv.delete(GOALS_KEY, SESSIONS_KEY, LAST_SYNC_KEY)
        except FolioError as e:
            raise PersistenceError(f"Failed to clear accountability data: {e}") from e


class HTTPAccountabilityBackend:
    """
    Client for folio's own ``/api/goals`` and ``/api/sessions`` routes.

    Any non-2xx answer raises ``PersistenceError`` carrying the server's
    ``error`` text.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _call(self, method: str, path: str, default_error: str, body: Any = None) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=body)
        except httpx.HTTPError as e:
            raise PersistenceError(f"{default_error}: {e}", path=path) from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.is_success:
            raise PersistenceError(
                str(data.get("error") or default_error),
                path=path,
                status_code=response.status_code,
            )
        return data

    async def load_goals(self) -> list[Goal]:
        data = await self._call("GET", "/api/goals", "Failed to load goals")
        return parse_collection(Goal, data.get("goals") or [])

    async def save_goals(self, goals: Sequence[Goal]) -> None:
        await self._call("POST", "/api/goals", "Failed to save goals", {"goals": dump_collection(goals)})

    async def load_sessions(self) -> list[WorkSession]:
        data = await self._call("GET", "/api/sessions", "Failed to load sessions")
        return parse_collection(WorkSession, data.get("sessions") or [])

    async def save_sessions(self, sessions: Sequence[WorkSession]) -> None:
        await self._call(
            "POST", "/api/sessions", "Failed to save sessions", {"sessions": dump_collection(sessions)}
        )
