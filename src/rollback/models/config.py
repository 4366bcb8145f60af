"""Pydantic models for rollback CLI configuration."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DockerEngine(str, Enum):
    """How docker pull/stop/run commands are executed."""

    CLI = "cli"
    SDK = "sdk"


class RollbackConfig(BaseModel):
    """Resolved configuration for a single CLI invocation.

    Attributes:
        history_file: Path of the JSON history file, relative to the working dir
        default_limit: Number of entries shown by ``list`` when --limit is absent
        docker_engine: Use the docker CLI or the Docker SDK for container steps
        command_timeout: Timeout in seconds for each external command
        compose_file: Compose file passed to ``docker compose -f``
    """

    model_config = ConfigDict(extra="forbid")

    history_file: str = Field(
        default=".rollback-history.json", description="History file path"
    )
    default_limit: int = Field(
        default=20, ge=1, description="Default number of entries for list"
    )
    docker_engine: DockerEngine = Field(
        default=DockerEngine.CLI, description="Docker execution backend"
    )
    command_timeout: float | None = Field(
        default=None, gt=0, description="Per-command timeout in seconds"
    )
    compose_file: str | None = Field(
        default=None, description="Compose file for service restarts"
    )

    @field_validator("history_file")
    @classmethod
    def validate_history_file(cls, v: str) -> str:
        """Reject blank history file paths."""
        if not v.strip():
            raise ValueError("history_file cannot be empty")
        return v
