"""Read-only Focusmate client and session statistics."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from folio.core.exceptions import IntegrationNotConfiguredError, UpstreamError

logger = logging.getLogger(__name__)

SERVICE = "focusmate"
BASE_URL = "https://api.focusmate.com/v1"
DEFAULT_RANGE_DAYS = 30


def _isoformat(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class FocusmateClient:
    """
    Async Focusmate API client (``X-API-KEY`` auth).

    Example:
        >>> async with FocusmateClient(api_key) as client:
        ...     sessions = await client.get_sessions()
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = BASE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not api_key:
            raise IntegrationNotConfiguredError("Focusmate", ["FOCUSMATE_API_KEY"])

        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"X-API-KEY": api_key, "Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> FocusmateClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise UpstreamError(SERVICE, f"Request failed: {e}", path=path) from e

        if not response.is_success:
            raise UpstreamError(
                SERVICE,
                f"Focusmate API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                path=path,
            )
        return response.json()

    async def get_profile(self) -> dict[str, Any]:
        return await self._get("/me")

    async def get_sessions(
        self,
        start: datetime | str | None = None,
        end: datetime | str | None = None,
    ) -> dict[str, Any]:
        """
        List sessions in ``[start, end]``.

        Missing bounds default to the last 30 days ending now. Strings
        are passed through untouched.
        """
        now = self._clock()
        if end is None:
            end = now
        if start is None:
            start = now - timedelta(days=DEFAULT_RANGE_DAYS)

        params = {
            "start": start if isinstance(start, str) else _isoformat(start),
            "end": end if isinstance(end, str) else _isoformat(end),
        }
        logger.debug("Fetching Focusmate sessions %s..%s", params["start"], params["end"])
        return await self._get("/sessions", params)


def _first_user(session: dict[str, Any]) -> dict[str, Any]:
    users = session.get("users") or []
    return users[0] if users else {}


def completion_rate(sessions: Sequence[dict[str, Any]]) -> int:
    """Percent of sessions the account holder completed."""
    if not sessions:
        return 0
    completed = sum(1 for s in sessions if _first_user(s).get("completed") is True)
    return round(completed / len(sessions) * 100)


def total_focus_ms(sessions: Sequence[dict[str, Any]]) -> int:
    return sum(int(s.get("duration") or 0) for s in sessions)


def duration_buckets(sessions: Sequence[dict[str, Any]]) -> dict[str, int]:
    """Count sessions up to 25 minutes, up to 50, and longer."""
    minutes = [int(s.get("duration") or 0) / 60000 for s in sessions]
    return {
        "shortSessions": sum(1 for m in minutes if m <= 25),
        "mediumSessions": sum(1 for m in minutes if 25 < m <= 50),
        "longSessions": sum(1 for m in minutes if m > 50),
    }
