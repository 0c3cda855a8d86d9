"""
.env loading for folio's secrets.

GITHUB_TOKEN, CRON_SECRET, the key-value store credentials and the
integration keys normally come from the process environment. For local
runs they can also live in .env files, layered as:

    shell environment > project .env / .env.local > ~/.config/folio/.env

``load_layered_env`` reports which layer supplied each setting folio
reads, so ``folio --debug`` can show where a credential came from
without printing its value.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Literal

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

EnvSource = Literal["environment", "project", "user"]

FOLIO_ENV_KEYS: tuple[str, ...] = (
    "GITHUB_TOKEN",
    "CRON_SECRET",
    "UPSTASH_REDIS_REST_URL",
    "UPSTASH_REDIS_REST_TOKEN",
    "REDIS_KV_REST_API_URL",
    "REDIS_KV_REST_API_TOKEN",
    "BEEMINDER_USERNAME",
    "BEEMINDER_AUTH_TOKEN",
    "FOCUSMATE_API_KEY",
    "FOLIO_API_BASE_URL",
    "FOLIO_PROJECTS_FILE",
    "FOLIO_SYNC_BATCH_SIZE",
    "FOLIO_SYNC_BATCH_DELAY",
)


def default_user_env_path() -> Path:
    config_home = Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config")))
    return config_home / "folio" / ".env"


def _read_layer(paths: Iterable[Path]) -> dict[str, str]:
    """Merge the given .env files in order; later files win, blank keys are skipped."""
    merged: dict[str, str] = {}
    for path in paths:
        path = Path(path)
        if not path.is_file():
            continue
        for key, value in dotenv_values(path).items():
            if key and value is not None:
                merged[key] = value
        logger.debug("Read env file %s", path)
    return merged


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> dict[str, EnvSource]:
    """
    Export .env values into ``os.environ`` without touching the shell's.

    Args:
        project_dir: Base directory for the project .env files (defaults to cwd)
        user_env_paths: User-level .env files (defaults to ~/.config/folio/.env)
        project_env_paths: Project .env files (defaults to .env then .env.local)

    Returns:
        For each setting in ``FOLIO_ENV_KEYS`` that is now set, the layer
        it came from

    Example:
        >>> sources = load_layered_env()
        >>> sources.get("GITHUB_TOKEN")
        'project'
    """
    if project_dir is None:
        project_dir = Path.cwd()
    if user_env_paths is None:
        user_env_paths = [default_user_env_path()]
    if project_env_paths is None:
        project_env_paths = [project_dir / ".env", project_dir / ".env.local"]

    shell_keys = set(os.environ)
    layered: dict[str, tuple[str, EnvSource]] = {}
    for key, value in _read_layer(user_env_paths).items():
        layered[key] = (value, "user")
    for key, value in _read_layer(project_env_paths).items():
        layered[key] = (value, "project")

    sources: dict[str, EnvSource] = {}
    for key, (value, source) in layered.items():
        if key in shell_keys:
            continue
        os.environ[key] = value
        if key in FOLIO_ENV_KEYS:
            sources[key] = source

    for key in FOLIO_ENV_KEYS:
        if key in shell_keys:
            sources[key] = "environment"

    return sources
