"""
Folio - portfolio site back end

Keeps project records in step with their GitHub repositories and stores
goals and work sessions for the accountability tracker.
"""

__version__ = "0.4.0"

# Re-export core models for convenience
from folio.core.accountability.models import Goal, GoalStatus, WorkSession
from folio.core.config.models import FolioConfig
from folio.core.projects.models import Project

__all__ = ["FolioConfig", "Goal", "GoalStatus", "Project", "WorkSession", "__version__"]
