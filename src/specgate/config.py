"""Validator configuration with project-file and environment precedence.

:func:`resolve_config` merges, from lowest to highest precedence:

1. Defaults declared on :class:`~specgate.models.ValidatorConfig`.
2. The project file ``./specgate.json`` (or the file named by
   ``SPECGATE_CONFIG``), see :func:`load_project_config`.
3. ``SPECGATE_*`` environment variables, see :func:`load_env_config`.
4. Explicit overrides passed by the caller (CLI flags, application code).

Example ``specgate.json``::

    {
      "reject_missing": true,
      "state_key": "openapi"
    }
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from specgate.exceptions import ConfigError
from specgate.models import ValidatorConfig

_PROJECT_CONFIG_FILENAME = "specgate.json"
_ENV_PREFIX = "SPECGATE_"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


# --- Project-local config ---


def _project_config_path() -> Path:
    """Path of the project config file, honouring ``SPECGATE_CONFIG``."""
    explicit = os.environ.get(f"{_ENV_PREFIX}CONFIG")
    if explicit:
        return Path(explicit).expanduser()
    return Path.cwd() / _PROJECT_CONFIG_FILENAME


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = _project_config_path()
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid project config at {path}: expected a JSON object, "
            f"got {type(data).__name__}"
        )
    return data


# --- Environment ---


def _parse_bool(var: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"Environment variable {var}={raw!r} is not a boolean")


def load_env_config() -> dict[str, Any]:
    """Collect config values from ``SPECGATE_*`` environment variables.

    Boolean fields accept ``1/0``, ``true/false``, ``yes/no``, ``on/off``.

    Returns:
        A dict containing only the fields that are set in the environment.

    Raises:
        ConfigError: If a boolean variable has an unrecognised value.
    """
    values: dict[str, Any] = {}
    for field_name, field in ValidatorConfig.model_fields.items():
        var = f"{_ENV_PREFIX}{field_name.upper()}"
        raw = os.environ.get(var)
        if raw is None or raw == "":
            continue
        if field.annotation is bool:
            values[field_name] = _parse_bool(var, raw)
        else:
            values[field_name] = raw
    return values


# --- Precedence resolution ---


def resolve_config(**overrides: Any) -> ValidatorConfig:
    """Resolve the effective :class:`~specgate.models.ValidatorConfig`.

    Args:
        **overrides: Field values with the highest precedence. ``None``
            values are ignored so CLI options can be passed through as-is.

    Returns:
        The merged configuration.

    Raises:
        ConfigError: If any layer holds an unknown key or a bad value.
    """
    merged: dict[str, Any] = {}

    project = load_project_config()
    if project is not None:
        merged.update(project)

    merged.update(load_env_config())
    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return ValidatorConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid specgate configuration: {exc}") from exc
