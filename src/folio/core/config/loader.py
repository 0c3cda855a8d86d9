"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import FolioConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per process
_config_cache: FolioConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """
    Get path to user configuration file.

    Returns:
        Path to ~/.config/folio/config.json (or XDG equivalent)
    """
    return get_xdg_config_home() / "folio" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Working directory to search from (defaults to current directory)

    Returns:
        Path to .folio.json in the project root
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".folio.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`. Nested
    dicts are merged, not replaced.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 10}}, {"b": {"y": 2}})
        {'a': 1, 'b': {'x': 10, 'y': 2}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        # Config system should be resilient to a broken file
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def _set_nested(config: dict[str, Any], section: str, key: str, value: Any) -> None:
    if section not in config or not isinstance(config[section], dict):
        config[section] = {}
    config[section][key] = value


# (env var names, section, key) - first non-empty variable wins
_STRING_ENV_OVERRIDES: list[tuple[tuple[str, ...], str, str]] = [
    (("GITHUB_TOKEN",), "github", "token"),
    (("CRON_SECRET",), "cron", "secret"),
    (("UPSTASH_REDIS_REST_URL", "REDIS_KV_REST_API_URL"), "kv", "url"),
    (("UPSTASH_REDIS_REST_TOKEN", "REDIS_KV_REST_API_TOKEN"), "kv", "token"),
    (("BEEMINDER_USERNAME",), "integrations", "beeminder_username"),
    (("BEEMINDER_AUTH_TOKEN",), "integrations", "beeminder_auth_token"),
    (("FOCUSMATE_API_KEY",), "integrations", "focusmate_api_key"),
    (("FOLIO_API_BASE_URL",), "store", "api_base_url"),
]


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Env vars have the highest precedence and override all config files.

    Supported env vars:
        GITHUB_TOKEN - github.token
        CRON_SECRET - cron.secret
        UPSTASH_REDIS_REST_URL / REDIS_KV_REST_API_URL - kv.url
        UPSTASH_REDIS_REST_TOKEN / REDIS_KV_REST_API_TOKEN - kv.token
        BEEMINDER_USERNAME, BEEMINDER_AUTH_TOKEN, FOCUSMATE_API_KEY - integrations
        FOLIO_API_BASE_URL - store.api_base_url
        FOLIO_PROJECTS_FILE - projects_file
        FOLIO_SYNC_BATCH_SIZE - sync.batch_size
        FOLIO_SYNC_BATCH_DELAY - sync.batch_delay_seconds

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()

    for names, section, key in _STRING_ENV_OVERRIDES:
        for name in names:
            if value := os.environ.get(name):
                _set_nested(result, section, key, value)
                break

    if projects_file := os.environ.get("FOLIO_PROJECTS_FILE"):
        result["projects_file"] = projects_file

    if batch_size_str := os.environ.get("FOLIO_SYNC_BATCH_SIZE"):
        try:
            batch_size = int(batch_size_str)
            if batch_size < 1:
                logger.warning(
                    "FOLIO_SYNC_BATCH_SIZE must be >= 1, got %d, ignoring", batch_size
                )
            else:
                _set_nested(result, "sync", "batch_size", batch_size)
        except ValueError:
            logger.warning("Invalid FOLIO_SYNC_BATCH_SIZE value '%s', ignoring", batch_size_str)

    if delay_str := os.environ.get("FOLIO_SYNC_BATCH_DELAY"):
        try:
            _set_nested(result, "sync", "batch_delay_seconds", float(delay_str))
        except ValueError:
            logger.warning("Invalid FOLIO_SYNC_BATCH_DELAY value '%s', ignoring", delay_str)

    return result


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    Only values that differ from the model defaults, or that callers are
    expected to tune often, are spelled out here.
    """
    return {
        "sync": {
            "batch_size": 3,
            "batch_delay_seconds": 2.0,
            "rate_limit_threshold": 100,
            "freshness_hours": 24,
        },
        "store": {"reconcile_interval_seconds": 30},
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> FolioConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables
        2. Project config (.folio.json)
        3. User config (~/.config/folio/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Project directory to load .folio.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated FolioConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = FolioConfig(**merged)
    _config_cache = config

    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
