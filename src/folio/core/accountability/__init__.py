"""
Accountability tracker: goals, work sessions and timers.

The store applies mutations optimistically and persists whole
collections through a backend; a failed write rolls local state back
and re-raises.

Example:
    >>> from folio.core.accountability import AccountabilityStore, KVAccountabilityBackend
    >>> store = AccountabilityStore(KVAccountabilityBackend(kv))
    >>> await store.initialize()
    >>> await store.start_session({"sessionTitle": "Write intro", "duration": 25})
"""

from folio.core.accountability.backends import (
    GOALS_KEY,
    LAST_SYNC_KEY,
    SESSIONS_KEY,
    AccountabilityBackend,
    HTTPAccountabilityBackend,
    KVAccountabilityBackend,
)
from folio.core.accountability.models import (
    Goal,
    GoalFields,
    GoalPriority,
    GoalStatus,
    GoalType,
    SessionFields,
    SessionType,
    WorkSession,
)
from folio.core.accountability.reconciler import PeriodicReconciler
from folio.core.accountability.store import AccountabilityStore, optimistic_update
from folio.core.accountability.timer import (
    PRESETS,
    FocusTimer,
    SessionClock,
    TimerPreset,
    TimerState,
    TimerTransitionError,
    format_clock,
    format_countdown,
)

__all__ = [
    "GOALS_KEY",
    "LAST_SYNC_KEY",
    "PRESETS",
    "SESSIONS_KEY",
    "AccountabilityBackend",
    "AccountabilityStore",
    "FocusTimer",
    "Goal",
    "GoalFields",
    "GoalPriority",
    "GoalStatus",
    "GoalType",
    "HTTPAccountabilityBackend",
    "KVAccountabilityBackend",
    "PeriodicReconciler",
    "SessionClock",
    "SessionFields",
    "SessionType",
    "TimerPreset",
    "TimerState",
    "TimerTransitionError",
    "WorkSession",
    "format_clock",
    "format_countdown",
    "optimistic_update",
]
