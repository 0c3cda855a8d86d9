"""
Read-only Beeminder client and goal helpers.

The client authenticates with the account's personal auth token passed
as a query parameter. Goals come back as plain dicts, since Beeminder's
goal schema is wide and mostly passed through to the dashboard as is.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

import httpx

from folio.core.exceptions import IntegrationNotConfiguredError, UpstreamError

logger = logging.getLogger(__name__)

SERVICE = "beeminder"
BASE_URL = "https://www.beeminder.com/api/v1"

GOAL_TYPE_LABELS = {
    "hustler": "Do More",
    "biker": "Odometer",
    "fatloser": "Weight Loss",
    "gainer": "Gain Weight",
    "inboxer": "Inbox Fewer",
    "drinker": "Do Less",
    "custom": "Custom",
}

# Goals with fewer safe days than this are urgent
URGENT_SAFEBUF = 3


class BeeminderClient:
    """
    Async Beeminder API client.

    Example:
        >>> async with BeeminderClient(username, token) as client:
        ...     user = await client.get_user()
        ...     goal = await client.get_goal("writing")
    """

    def __init__(
        self,
        username: str | None,
        auth_token: str | None,
        *,
        base_url: str = BASE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        missing = [
            name
            for name, value in (("BEEMINDER_USERNAME", username), ("BEEMINDER_AUTH_TOKEN", auth_token))
            if not value
        ]
        if missing:
            raise IntegrationNotConfiguredError("Beeminder", missing)

        self.username = username
        self._auth_token = auth_token
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> BeeminderClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, **params: Any) -> dict[str, Any]:
        params["auth_token"] = self._auth_token
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise UpstreamError(SERVICE, f"Request failed: {e}", path=path) from e

        if not response.is_success:
            raise UpstreamError(
                SERVICE,
                f"Beeminder API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                path=path,
            )
        return response.json()

    async def get_user(self) -> dict[str, Any]:
        return await self._get(f"/users/{self.username}.json")

    async def get_goal(self, slug: str, datapoints: bool = True) -> dict[str, Any]:
        """
        Fetch one goal by slug.

        Raises:
            ValueError: If ``slug`` is empty
            UpstreamError: On a non-2xx answer (404 for an unknown goal)
        """
        if not slug:
            raise ValueError("Goal slug is required")
        return await self._get(
            f"/users/{self.username}/goals/{slug}.json",
            datapoints="true" if datapoints else "false",
        )


def _is_live(goal: dict[str, Any]) -> bool:
    return not (goal.get("frozen") or goal.get("won") or goal.get("lost"))


def dot_color(safebuf: float) -> str:
    """Beeminder's traffic-light color for a number of safe days."""
    if safebuf < 1:
        return "red"
    if safebuf < 2:
        return "orange"
    if safebuf < 3:
        return "blue"
    if safebuf < 7:
        return "green"
    return "gray"


def goal_progress(goal: dict[str, Any]) -> float:
    """Percent of the way from ``initval`` to ``goalval``, clamped to 0-100."""
    goalval = goal.get("goalval")
    initval = goal.get("initval")
    if not goalval or not initval:
        return 0.0

    total = goalval - initval
    if total == 0:
        return 100.0
    current = (goal.get("curval") or 0) - initval
    return max(0.0, min(100.0, current / total * 100))


def urgent_goals(goals: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Live goals close to derailing, soonest deadline first."""
    urgent = [g for g in goals if _is_live(g) and g.get("safebuf", 0) < URGENT_SAFEBUF]
    return sorted(urgent, key=lambda g: g.get("losedate", 0))


def goal_stats(
    goals: Sequence[dict[str, Any]],
    archived: Sequence[dict[str, Any]] = (),
) -> dict[str, Any]:
    active = [g for g in goals if _is_live(g)]
    goal_types: dict[str, int] = {}
    for goal in active:
        goal_type = goal.get("goal_type", "custom")
        goal_types[goal_type] = goal_types.get(goal_type, 0) + 1

    return {
        "active": len(active),
        "frozen": sum(1 for g in goals if g.get("frozen")),
        "completed": sum(1 for g in goals if g.get("won")),
        "derailed": sum(1 for g in goals if g.get("lost")),
        "archived": len(archived),
        "totalPledged": sum(g.get("pledge", 0) for g in active),
        "urgent": len(urgent_goals(goals)),
        "goalTypes": goal_types,
    }


def goal_type_label(goal_type: str) -> str:
    return GOAL_TYPE_LABELS.get(goal_type, goal_type)
