"""Environment variable helpers for configuration loading.

Supports ``${VAR_NAME}`` substitution inside the YAML configuration file and
loading a ``.env`` file into the process environment.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from dotenv import load_dotenv

from rollback.lib.errors import ConfigError

ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def substitute_env_vars(text: str) -> str:
    """Replace ``${VAR_NAME}`` references with environment variable values.

    Args:
        text: Raw configuration text

    Returns:
        Text with every reference substituted

    Raises:
        ConfigError: If a referenced variable is not set
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        value = os.environ.get(name)
        if value is None:
            raise ConfigError(
                name,
                f"Environment variable '{name}' is referenced but not set",
            )
        return value

    return ENV_VAR_PATTERN.sub(_replace, text)


def load_env_file(path: Path) -> bool:
    """Load variables from a .env file without overriding the environment.

    Args:
        path: Path to the .env file

    Returns:
        True if the file existed and was loaded
    """
    if not path.is_file():
        return False
    return load_dotenv(path, override=False)
