"""
Configuration models and loading.

This module provides Pydantic models for folio configuration
with multi-layer merging: defaults < user < project < env vars.
"""

from .loader import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import (
    CronConfig,
    FolioConfig,
    GitHubConfig,
    IntegrationsConfig,
    KVConfig,
    StoreConfig,
    SyncConfig,
)

__all__ = [
    # Models
    "CronConfig",
    "FolioConfig",
    "GitHubConfig",
    "IntegrationsConfig",
    "KVConfig",
    "StoreConfig",
    "SyncConfig",
    # Loader functions
    "clear_cache",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
]
