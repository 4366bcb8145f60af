"""Default configuration values for the rollback CLI."""

HISTORY_FILE = ".rollback-history.json"
CONFIG_FILE = ".rollback.yaml"
ENV_FILE = ".env"

DEFAULT_CONFIG: dict[str, int | str | None] = {
    "history_file": HISTORY_FILE,
    "default_limit": 20,
    "docker_engine": "cli",
    "command_timeout": None,  # seconds
    "compose_file": None,
}

# Environment variable to field name mapping
ENV_VAR_MAP: dict[str, str] = {
    "history_file": "ROLLBACK_HISTORY_FILE",
    "default_limit": "ROLLBACK_DEFAULT_LIMIT",
    "docker_engine": "ROLLBACK_DOCKER_ENGINE",
    "command_timeout": "ROLLBACK_COMMAND_TIMEOUT",
    "compose_file": "ROLLBACK_COMPOSE_FILE",
}
