"""
Configuration data models for folio.

These models define the structure of .folio.json and ~/.config/folio/config.json
files, with validation and type safety via Pydantic.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GitHubConfig(BaseModel):
    """
    GitHub API access settings.

    The token is optional; unauthenticated requests work but share the
    much smaller anonymous rate limit.
    """
    token: Optional[str] = Field(
        default=None,
        description="Personal access token sent as a bearer token"
    )
    api_url: str = Field(
        default="https://api.github.com",
        description="Base URL of the GitHub REST API"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Per-request timeout for GitHub calls"
    )
    user_agent: str = Field(
        default="folio-github-sync",
        description="User-Agent header sent with every request"
    )
    contributor_pages: int = Field(
        default=3,
        ge=1,
        description="Maximum pages (100 per page) of contributors to fetch"
    )
    count_lines_of_code: bool = Field(
        default=False,
        description="Download source files to count non-empty lines (expensive)"
    )
    max_loc_files: int = Field(
        default=50,
        ge=1,
        description="Maximum number of files inspected when counting lines"
    )


class SyncConfig(BaseModel):
    """
    Pacing and selection policy for repository syncs.

    One policy applies to every bulk path (scheduled, manual, admin).
    """
    batch_size: int = Field(
        default=3,
        ge=1,
        description="Projects synced concurrently per batch"
    )
    batch_delay_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Fixed pause between consecutive batches"
    )
    rate_limit_threshold: int = Field(
        default=100,
        ge=0,
        description="Scheduled runs abort when fewer API calls than this remain"
    )
    freshness_hours: float = Field(
        default=24.0,
        gt=0.0,
        description="Projects synced more recently than this are skipped by scheduled runs"
    )
    max_projects_per_run: int = Field(
        default=50,
        ge=1,
        description="Upper bound on projects picked by a scheduled run"
    )
    contributor_limit: int = Field(
        default=10,
        ge=0,
        description="Number of top contributors stored on a project"
    )
    short_description_length: int = Field(
        default=150,
        ge=1,
        description="Length at which the short description is truncated"
    )


class KVConfig(BaseModel):
    """
    Remote key-value store (Upstash Redis REST) credentials.

    When either value is missing an in-memory store is used instead.
    """
    url: Optional[str] = Field(default=None, description="REST endpoint URL")
    token: Optional[str] = Field(default=None, description="REST bearer token")

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.token)


class StoreConfig(BaseModel):
    """Client-side accountability store settings."""
    reconcile_interval_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="How often goals are re-fetched from the remote store"
    )
    api_base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the folio API used by the HTTP backend"
    )


class CronConfig(BaseModel):
    """Scheduled sync endpoint guard."""
    secret: Optional[str] = Field(
        default=None,
        description="Bearer secret expected on the scheduled sync endpoint"
    )


class IntegrationsConfig(BaseModel):
    """Credentials for the third-party accountability services."""
    beeminder_username: Optional[str] = Field(default=None)
    beeminder_auth_token: Optional[str] = Field(default=None)
    focusmate_api_key: Optional[str] = Field(default=None)


class FolioConfig(BaseModel):
    """
    Top-level folio configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = FolioConfig(sync=SyncConfig(batch_size=5))
        >>> config.sync.batch_size
        5
    """
    github: GitHubConfig = Field(
        default_factory=GitHubConfig,
        description="GitHub API access"
    )
    sync: SyncConfig = Field(
        default_factory=SyncConfig,
        description="Repository sync pacing"
    )
    kv: KVConfig = Field(
        default_factory=KVConfig,
        description="Remote key-value store"
    )
    store: StoreConfig = Field(
        default_factory=StoreConfig,
        description="Accountability store"
    )
    cron: CronConfig = Field(
        default_factory=CronConfig,
        description="Scheduled sync guard"
    )
    integrations: IntegrationsConfig = Field(
        default_factory=IntegrationsConfig,
        description="Beeminder / Focusmate credentials"
    )
    projects_file: str = Field(
        default=".folio/projects.json",
        description="JSON file holding project records"
    )

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields for forward compatibility
        validate_assignment=True,
    )
