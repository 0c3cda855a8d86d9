"""Read-only clients for the Beeminder and Focusmate dashboards."""

from folio.core.integrations.beeminder import (
    BeeminderClient,
    dot_color,
    goal_progress,
    goal_stats,
    goal_type_label,
    urgent_goals,
)
from folio.core.integrations.focusmate import (
    FocusmateClient,
    completion_rate,
    duration_buckets,
    total_focus_ms,
)

__all__ = [
    "BeeminderClient",
    "FocusmateClient",
    "completion_rate",
    "dot_color",
    "duration_buckets",
    "goal_progress",
    "goal_stats",
    "goal_type_label",
    "total_focus_ms",
    "urgent_goals",
]
