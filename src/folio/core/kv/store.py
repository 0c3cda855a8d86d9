"""
Key-value store adapters.

Values are JSON documents stored whole under fixed keys: the store is a
passive durability backend with full-overwrite, last-write-wins
semantics and no compare-and-swap.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from folio.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

SERVICE = "kv"


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal async key-value interface."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def delete(self, *keys: str) -> int: ...

    async def ping(self) -> bool: ...


class MemoryKeyValueStore:
    """
    Process-local store.

    Used when no remote credentials are configured, and as the test
    double. Values are deep-copied in and out so callers never share
    mutable state with the store.
    """

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    async def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if key in self._data:
                del self._data[key]
                removed += 1
        return removed

    async def ping(self) -> bool:
        return True


class UpstashRedisStore:
    """
    Redis over the Upstash REST protocol.

    Every command is a ``POST`` of a JSON array (``["SET", key, value]``)
    to the database URL with a bearer token; the answer is
    ``{"result": ...}`` or ``{"error": "..."}``. Values are stored as
    JSON strings.

    Example:
        >>> kv = UpstashRedisStore(url, token)
        >>> await kv.set("accountability:goals", [])
        >>> await kv.get("accountability:goals")
        []
    """

    def __init__(
        self,
        url: str,
        token: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url.rstrip("/")
        self._client = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def command(self, *args: Any) -> Any:
        """
        Run one Redis command and return its ``result``.

        Raises:
            UpstreamError: On transport failure, non-2xx status, or a
                Redis error reply
        """
        try:
            response = await self._client.post(self.url, json=list(args))
        except httpx.HTTPError as e:
            raise UpstreamError(SERVICE, f"Key-value request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}

        if not response.is_success or "error" in body:
            message = body.get("error")
            raise UpstreamError(
                SERVICE,
                f"Key-value command {args[0]} failed: {message or response.status_code}",
                status_code=response.status_code,
            )
        return body.get("result")

    async def get(self, key: str) -> Any | None:
        raw = await self.command("GET", key)
        if raw is None:
            return None
        if not isinstance(raw, str):
            return raw
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            # Values written by other clients may be plain strings
            return raw

    async def set(self, key: str, value: Any) -> None:
        await self.command("SET", key, json.dumps(value))

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self.command("DEL", *keys) or 0)

    async def ping(self) -> bool:
        try:
            return await self.command("PING") == "PONG"
        except UpstreamError as e:
            logger.error("Key-value connection failed: %s", e)
            return False


def create_kv_store(url: str | None, token: str | None) -> KeyValueStore:
    """
    Build the configured store.

    Falls back to ``MemoryKeyValueStore`` (with a warning) when either
    credential is missing.
    """
    if url and token:
        return UpstashRedisStore(url, token)
    logger.warning("Key-value credentials not configured; using in-memory store")
    return MemoryKeyValueStore()


__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "UpstashRedisStore",
    "create_kv_store",
]
