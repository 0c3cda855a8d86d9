"""
Custom exceptions for folio.

Exception Hierarchy:
    FolioError (base)
    ├── ConfigurationError (missing or invalid settings)
    │   └── IntegrationNotConfiguredError
    ├── UpstreamError (GitHub, key-value store, Beeminder, Focusmate)
    │   └── RepositoryNotFoundError
    ├── StoreError (persistence failures)
    │   ├── PersistenceError (a full-collection write or read failed)
    │   └── ProjectNotFoundError
    └── GoalNotFoundError

Example:
    >>> from folio.core.exceptions import UpstreamError
    >>> try:
    ...     raise UpstreamError("github", "Server error", status_code=502)
    ... except UpstreamError as e:
    ...     print(f"Error from {e.service}: {e}")
"""


class FolioError(Exception):
    """
    Base exception for all folio errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class ConfigurationError(FolioError):
    """Raised when a required setting (secret, credential, URL) is missing or invalid."""


class UpstreamError(FolioError):
    """
    An external service failed or answered with a non-success status.

    The original exception, when there is one, is preserved via
    ``__cause__``.

    Attributes:
        service: Name of the upstream service (e.g. "github", "kv")
        status_code: HTTP status returned by the service, if any
    """

    def __init__(
        self,
        service: str,
        message: str,
        status_code: int | None = None,
        **context: object,
    ) -> None:
        super().__init__(message, service=service, status_code=status_code, **context)
        self.service = service
        self.status_code = status_code

    def __str__(self) -> str:
        return f"[{self.service}] {self.message}"


class RepositoryNotFoundError(UpstreamError):
    """The repository does not exist or is not visible with the current token."""

    def __init__(self, full_name: str) -> None:
        super().__init__(
            "github",
            f"Repository {full_name} not found",
            status_code=404,
            repository=full_name,
        )
        self.full_name = full_name


class StoreError(FolioError):
    """
    Exception for storage errors.

    Example:
        >>> try:
        ...     path.write_text(data)
        ... except OSError as e:
        ...     raise StoreError("Failed to write projects", path=str(path)) from e
    """


class PersistenceError(StoreError):
    """A full-collection write (or read) against the durable store failed."""


class ProjectNotFoundError(StoreError):
    """No project record exists with the requested id."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project {project_id} not found", project_id=project_id)
        self.project_id = project_id


class GoalNotFoundError(FolioError):
    """No goal exists with the requested id."""

    def __init__(self, goal_id: str) -> None:
        super().__init__(f"Goal {goal_id} not found", goal_id=goal_id)
        self.goal_id = goal_id


class IntegrationNotConfiguredError(ConfigurationError):
    """Credentials for a third-party integration are missing."""

    def __init__(self, integration: str, missing: list[str]) -> None:
        super().__init__(
            f"{integration} credentials not configured (missing: {', '.join(missing)})",
            integration=integration,
            missing=missing,
        )
        self.integration = integration
        self.missing = missing


__all__ = [
    "FolioError",
    "ConfigurationError",
    "UpstreamError",
    "RepositoryNotFoundError",
    "StoreError",
    "PersistenceError",
    "ProjectNotFoundError",
    "GoalNotFoundError",
    "IntegrationNotConfiguredError",
]
