"""Configuration loader for the rollback CLI.

Configuration priority (highest to lowest):
1. CLI flags
2. ``.rollback.yaml`` in the working directory (or ``--config PATH``)
3. Environment variables (ROLLBACK_* vars, optionally from ``.env``)
4. Built-in defaults
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from rollback.config.defaults import CONFIG_FILE, DEFAULT_CONFIG, ENV_FILE, ENV_VAR_MAP
from rollback.config.env_loader import load_env_file, substitute_env_vars
from rollback.lib.errors import ConfigError
from rollback.models.config import RollbackConfig

logger = logging.getLogger(__name__)


def flatten_pydantic_errors(exc: PydanticValidationError) -> list[str]:
    """Flatten a Pydantic ValidationError into human-readable messages."""
    errors: list[str] = []

    for error in exc.errors():
        loc = error.get("loc", ())
        field_path = ".".join(str(item) for item in loc) if loc else "unknown"
        msg = error.get("msg", "Unknown error")
        errors.append(f"Field '{field_path}': {msg} (received: {error.get('input')!r})")

    return errors if errors else ["Validation failed with unknown error"]


def _get_env_values(env_vars: Mapping[str, str]) -> dict[str, str]:
    """Collect configuration values present in the environment.

    Values are returned as strings; RollbackConfig coerces them.
    """
    values: dict[str, str] = {}
    for field_name, env_var_name in ENV_VAR_MAP.items():
        value = env_vars.get(env_var_name)
        if value:
            values[field_name] = value
    return values


def _read_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML configuration file with environment variable substitution.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed mapping, empty if the file is empty

    Raises:
        ConfigError: If the file cannot be read or is not a YAML mapping
    """
    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(
            "config_file", f"Failed to read configuration file {path}: {e}"
        ) from e

    try:
        content = yaml.safe_load(substitute_env_vars(raw_text))
    except yaml.YAMLError as e:
        raise ConfigError(
            "config_parse", f"Failed to parse YAML file {path}: {e}"
        ) from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(
            "config_parse",
            f"Configuration file {path} must contain a mapping, "
            f"got {type(content).__name__}",
        )
    return content


def load_config(
    config_path: str | Path | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
    env_vars: Mapping[str, str] | None = None,
    working_dir: Path | None = None,
) -> RollbackConfig:
    """Resolve the configuration for one CLI invocation.

    Args:
        config_path: Explicit configuration file; must exist when given
        cli_overrides: Values from CLI flags; None values are ignored
        env_vars: Environment mapping (defaults to os.environ after .env load)
        working_dir: Directory holding .rollback.yaml and .env (defaults to cwd)

    Returns:
        Validated RollbackConfig

    Raises:
        ConfigError: If the file is unreadable or any value is invalid
    """
    base_dir = working_dir or Path.cwd()

    if env_vars is None:
        if load_env_file(base_dir / ENV_FILE):
            logger.debug(f"Loaded environment from {base_dir / ENV_FILE}")
        env_vars = os.environ

    resolved: dict[str, Any] = dict(DEFAULT_CONFIG)
    resolved.update(_get_env_values(env_vars))

    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigError("config_file", f"Configuration file not found: {path}")
        resolved.update(_read_config_file(path))
    elif (base_dir / CONFIG_FILE).is_file():
        logger.debug(f"Using configuration file {base_dir / CONFIG_FILE}")
        resolved.update(_read_config_file(base_dir / CONFIG_FILE))

    if cli_overrides:
        resolved.update({k: v for k, v in cli_overrides.items() if v is not None})

    try:
        return RollbackConfig(**resolved)
    except PydanticValidationError as e:
        error_text = "\n".join(flatten_pydantic_errors(e))
        raise ConfigError(
            "config_validation", f"Invalid configuration:\n{error_text}"
        ) from e


def resolve_history_path(config: RollbackConfig, working_dir: Path | None = None) -> Path:
    """Return the absolute history file path for a configuration."""
    path = Path(config.history_file).expanduser()
    if not path.is_absolute():
        path = (working_dir or Path.cwd()) / path
    return path
