"""markdb settings management.

Loads and merges settings from user-level and project-level settings.json
files:

1. ``<root>/.markdb/settings.json`` (project, highest precedence)
2. ``~/.markdb/settings.json`` (user, ``$MARKDB_HOME`` overrides the directory)
3. Hardcoded defaults
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from markdb.errors import ConfigError
from markdb.utils.paths import get_project_settings_path, get_user_settings_path

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: dict[str, Any] = {
    "globs": ["**/*.md"],
    "name_separator": "/",
    "allow_duplicate_ids": False,
}


@dataclass
class DbSettings:
    """Merged markdb settings."""

    globs: list[str] = field(default_factory=lambda: list(DEFAULT_SETTINGS["globs"]))
    name_separator: str = "/"
    allow_duplicate_ids: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "globs": self.globs,
            "name_separator": self.name_separator,
            "allow_duplicate_ids": self.allow_duplicate_ids,
        }


def load_json_file(path: Path) -> dict[str, Any]:
    """Load a JSON object from path, returning empty dict if the file is missing.

    Raises:
        ConfigError: if the file exists but is not a JSON object.
    """
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as err:
        raise ConfigError(f"Invalid JSON in {path}: {err}") from err
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a JSON object")
    return data


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base, returning new dict.

    - Dicts are recursively merged
    - Lists are replaced (not appended)
    - Scalars are replaced
    """
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_settings(root: Path | None = None) -> DbSettings:
    """Load and merge settings from user + project levels.

    Raises:
        ConfigError: if a settings file is unreadable or the merged
            settings are invalid.
    """
    merged = dict(DEFAULT_SETTINGS)

    user_path = get_user_settings_path()
    user_settings = load_json_file(user_path)
    if user_settings:
        logger.debug("Loaded user settings from %s", user_path)
        merged = deep_merge(merged, user_settings)

    if root is not None:
        project_path = get_project_settings_path(root)
        project_settings = load_json_file(project_path)
        if project_settings:
            logger.debug("Loaded project settings from %s", project_path)
            merged = deep_merge(merged, project_settings)

    settings = DbSettings(
        globs=merged.get("globs", DEFAULT_SETTINGS["globs"]),
        name_separator=merged.get("name_separator", "/"),
        allow_duplicate_ids=merged.get("allow_duplicate_ids", False),
    )
    errors = validate_settings(settings)
    if errors:
        raise ConfigError("Invalid settings: " + "; ".join(errors))
    return settings


def save_settings(settings: DbSettings, path: Path) -> None:
    """Save settings to a JSON file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(settings.to_dict(), indent=2) + "\n",
        encoding="utf-8",
    )


def validate_settings(settings: DbSettings) -> list[str]:
    """Validate settings, returning list of error messages (empty if valid)."""
    errors = []

    if not isinstance(settings.globs, list) or not settings.globs:
        errors.append("globs must be a non-empty list")
    elif not all(isinstance(g, str) and g for g in settings.globs):
        errors.append("globs must contain non-empty strings")

    if not isinstance(settings.name_separator, str) or not settings.name_separator:
        errors.append("name_separator must be a non-empty string")

    if not isinstance(settings.allow_duplicate_ids, bool):
        errors.append("allow_duplicate_ids must be a boolean")

    return errors
