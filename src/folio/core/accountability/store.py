"""
Optimistic accountability store.

Every mutation follows the same sequence:

1. compute the new collection from the current one
2. make it visible immediately
3. write the whole collection to the backend
4. on success, done
5. on failure, restore the previous collection and re-raise

Readers never observe a "pending" state, and a failed write leaves the
in-memory view exactly as it was before the call. There is no lock:
concurrent mutations each start from whatever is current when they are
called, and the last one to land wins.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel

from folio.core.accountability.backends import AccountabilityBackend
from folio.core.accountability.models import (
    Goal,
    GoalFields,
    GoalStatus,
    SessionFields,
    WorkSession,
    utcnow,
)
from folio.core.exceptions import GoalNotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_IMMUTABLE_GOAL_FIELDS = frozenset({"id", "created_at", "updated_at"})


async def optimistic_update(
    read: Callable[[], T],
    write: Callable[[T], None],
    next_value: T,
    persist: Callable[[T], Awaitable[None]],
) -> T:
    """
    Apply ``next_value`` locally, persist it, and roll back on failure.

    Args:
        read: Returns the current local value
        write: Replaces the local value
        next_value: Value to apply
        persist: Durable write of ``next_value``

    Returns:
        ``next_value`` once persisted

    Raises:
        Whatever ``persist`` raised, including cancellation, after the
        previous value is restored
    """
    previous = read()
    write(next_value)
    try:
        await persist(next_value)
    except BaseException:
        write(previous)
        raise
    return next_value


def _normalize_keys(model: type[BaseModel], updates: Mapping[str, Any]) -> dict[str, Any]:
    """Map camelCase or snake_case keys onto field names."""
    by_alias = {field.alias: name for name, field in model.model_fields.items() if field.alias}
    normalized: dict[str, Any] = {}
    for key, value in updates.items():
        name = key if key in model.model_fields else by_alias.get(key)
        if name is None:
            raise ValueError(f"Unknown {model.__name__} field: {key}")
        normalized[name] = value
    return normalized


class AccountabilityStore:
    """
    In-memory goals and work sessions with optimistic persistence.

    Example:
        >>> store = AccountabilityStore(KVAccountabilityBackend(kv))
        >>> await store.initialize()
        >>> goal = await store.add_goal({"title": "Finish draft", "priority": "high"})
        >>> await store.move_goal(goal.id, "completed")
    """

    def __init__(
        self,
        backend: AccountabilityBackend,
        *,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.backend = backend
        self._clock = clock or utcnow
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))
        self._goals: list[Goal] = []
        self._sessions: list[WorkSession] = []
        self.is_loading = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def goals(self) -> list[Goal]:
        return list(self._goals)

    @property
    def work_sessions(self) -> list[WorkSession]:
        return list(self._sessions)

    @property
    def current_session(self) -> WorkSession | None:
        """The active session, if any."""
        for session in self._sessions:
            if session.is_active:
                return session
        return None

    def _read_goals(self) -> list[Goal]:
        return self._goals

    def _write_goals(self, goals: list[Goal]) -> None:
        self._goals = goals

    def _read_sessions(self) -> list[WorkSession]:
        return self._sessions

    def _write_sessions(self, sessions: list[WorkSession]) -> None:
        self._sessions = sessions

    def _find_goal(self, goal_id: str) -> Goal:
        for goal in self._goals:
            if goal.id == goal_id:
                return goal
        raise GoalNotFoundError(goal_id)

    async def _commit_goals(self, goals: list[Goal], action: str) -> None:
        try:
            await optimistic_update(self._read_goals, self._write_goals, goals, self.backend.save_goals)
        except Exception as e:
            logger.error("Failed to %s, local goals restored: %s", action, e)
            raise

    async def _commit_sessions(self, sessions: list[WorkSession], action: str) -> None:
        try:
            await optimistic_update(
                self._read_sessions, self._write_sessions, sessions, self.backend.save_sessions
            )
        except Exception as e:
            logger.error("Failed to %s, local sessions restored: %s", action, e)
            raise

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    async def add_goal(self, fields: GoalFields | Mapping[str, Any]) -> Goal:
        """Create a goal with a fresh id; ``created_at == updated_at``."""
        if not isinstance(fields, GoalFields):
            fields = GoalFields.model_validate(fields)

        now = self._clock()
        goal = Goal(
            **fields.model_dump(),
            id=self._new_id(),
            created_at=now,
            updated_at=now,
        )
        await self._commit_goals([*self._goals, goal], "add goal")
        return goal

    async def update_goal(self, goal_id: str, updates: Mapping[str, Any]) -> Goal:
        """
        Apply ``updates`` to one goal and bump ``updated_at``.

        Raises:
            GoalNotFoundError: If no goal has this id (state untouched)
            ValueError: On an unknown or read-only field
            pydantic.ValidationError: If the result is not a valid goal
        """
        current = self._find_goal(goal_id)
        changes = _normalize_keys(Goal, updates)
        if read_only := _IMMUTABLE_GOAL_FIELDS & changes.keys():
            raise ValueError(f"Goal fields cannot be updated: {', '.join(sorted(read_only))}")

        data = current.model_dump()
        data.update(changes)
        data["updated_at"] = self._clock()
        updated = Goal.model_validate(data)

        goals = [updated if g.id == goal_id else g for g in self._goals]
        await self._commit_goals(goals, "update goal")
        return updated

    async def delete_goal(self, goal_id: str) -> None:
        self._find_goal(goal_id)
        await self._commit_goals([g for g in self._goals if g.id != goal_id], "delete goal")

    async def move_goal(self, goal_id: str, status: GoalStatus | str) -> Goal:
        """Change status; moving to ``completed`` stamps ``completed_at``."""
        status = GoalStatus(status)
        updates: dict[str, Any] = {"status": status}
        if status == GoalStatus.COMPLETED:
            updates["completed_at"] = self._clock()
        return await self.update_goal(goal_id, updates)

    def get_goals_by_status(self, status: GoalStatus | str) -> list[Goal]:
        status = GoalStatus(status)
        return [g for g in self._goals if g.status == status]

    def get_active_goals(self) -> list[Goal]:
        return self.get_goals_by_status(GoalStatus.ACTIVE)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def start_session(self, fields: SessionFields | Mapping[str, Any]) -> WorkSession:
        """
        Start a session, first stopping any active one.

        At most one session is active afterwards.
        """
        if not isinstance(fields, SessionFields):
            fields = SessionFields.model_validate(fields)

        await self.stop_session()

        session = WorkSession(
            **fields.model_dump(),
            id=self._new_id(),
            start_time=self._clock(),
            is_active=True,
        )
        await self._commit_sessions([*self._sessions, session], "start session")
        return session

    async def stop_session(self) -> WorkSession | None:
        """Close the active session. Returns it, or None if none was active."""
        current = self.current_session
        if current is None:
            return None

        end_time = self._clock()
        stopped = current.model_copy(
            update={"end_time": max(end_time, current.start_time), "is_active": False}
        )
        sessions = [stopped if s.id == current.id else s for s in self._sessions]
        await self._commit_sessions(sessions, "stop session")
        return stopped

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Load both collections from the backend.

        Any session still marked active is discarded: a session never
        survives a restart. On failure the store starts empty.
        """
        self.is_loading = True
        try:
            goals, sessions = await asyncio.gather(
                self.backend.load_goals(), self.backend.load_sessions()
            )
            self._goals = list(goals)
            self._sessions = [s for s in sessions if not s.is_active]
        except Exception as e:
            logger.error("Failed to initialize accountability store: %s", e)
            self._goals = []
            self._sessions = []
        finally:
            self.is_loading = False

    async def sync_from_remote(self) -> None:
        """Replace local goals with the remote collection (remote wins)."""
        self._goals = list(await self.backend.load_goals())
        logger.debug("Synced %d goals from remote", len(self._goals))
