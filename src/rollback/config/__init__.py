"""Configuration loading for the rollback CLI.

Main components:
- load_config: Resolve defaults, environment, .rollback.yaml and CLI flags
- Environment variable substitution (${VAR_NAME} pattern) and .env loading
"""

from rollback.config.env_loader import load_env_file, substitute_env_vars
from rollback.config.loader import load_config, resolve_history_path

__all__ = [
    "load_config",
    "load_env_file",
    "resolve_history_path",
    "substitute_env_vars",
]
