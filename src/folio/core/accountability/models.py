"""
Goal and work-session models for the accountability tracker.

Both collections are persisted whole as JSON arrays with camelCase keys
(``goalType``, ``createdAt``, ``isActive``, ...).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    NOT_ACHIEVED = "not_achieved"
    ARCHIVED = "archived"


class GoalPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class GoalType(str, Enum):
    DEADLINE = "deadline"
    DURATION = "duration"
    OPEN_ENDED = "open_ended"
    RECURRING = "recurring"


class DurationUnit(str, Enum):
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class SessionType(str, Enum):
    WORK = "work"
    BREAK = "break"
    STUDY = "study"
    RESEARCH = "research"
    WRITING = "writing"
    CODING = "coding"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class GoalDuration(_CamelModel):
    amount: float = Field(gt=0)
    unit: DurationUnit
    start_date: datetime


class RecurringPattern(_CamelModel):
    frequency: Frequency
    target: int = Field(ge=1)


class GoalFields(_CamelModel):
    """Caller-supplied goal fields (everything except id and timestamps)."""

    title: str = Field(min_length=1)
    description: str | None = None
    status: GoalStatus = GoalStatus.ACTIVE
    priority: GoalPriority = GoalPriority.MEDIUM
    category: str | None = None
    goal_type: GoalType = GoalType.OPEN_ENDED
    deadline: datetime | None = None
    duration: GoalDuration | None = None
    recurring_pattern: RecurringPattern | None = None
    completed_at: datetime | None = None
    notes: str | None = None
    tags: list[str] = Field(default_factory=list)


class Goal(GoalFields):
    """
    A tracked goal.

    A completed goal always carries ``completed_at``; when none is given
    it is stamped from ``updated_at``.

    Example:
        >>> goal = Goal(id="g1", title="Finish draft", status="completed",
        ...             created_at=now, updated_at=now)
        >>> goal.completed_at == now
        True
    """

    id: str
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def _stamp_completion(self) -> Goal:
        if self.status == GoalStatus.COMPLETED and self.completed_at is None:
            self.completed_at = self.updated_at
        return self


class SessionFields(_CamelModel):
    """Caller-supplied session fields for ``start_session``."""

    session_title: str = Field(min_length=1)
    type: SessionType = SessionType.WORK
    duration: int = Field(default=25, ge=1, description="Planned length in minutes")
    notes: str | None = None
    related_goal_id: str | None = None


class WorkSession(SessionFields):
    """
    A focus/work session.

    Active sessions have no ``end_time``; they live only in memory and are
    never written to the durable store.
    """

    id: str
    start_time: datetime
    end_time: datetime | None = None
    is_active: bool = False


M = TypeVar("M", bound=BaseModel)


def parse_collection(model: type[M], raw: Any) -> list[M]:
    """
    Parse a stored JSON array, skipping entries that fail validation.

    Anything that is not a list is treated as an empty collection.
    """
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("Expected a list for %s collection, got %s", model.__name__, type(raw).__name__)
        return []

    items: list[M] = []
    for entry in raw:
        try:
            items.append(model.model_validate(entry))
        except ValidationError as e:
            logger.warning("Skipping invalid %s entry: %s", model.__name__, e)
    return items


def dump_collection(items: Iterable[_CamelModel]) -> list[dict[str, Any]]:
    return [item.to_json_dict() for item in items]
