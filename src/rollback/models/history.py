"""Deployment history models persisted to the history file."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

HISTORY_FORMAT_VERSION = 1


class MechanismKind(str, Enum):
    """Deployment mechanisms a recorded tag can be rolled back with."""

    DOCKER = "docker"
    GIT = "git"
    PM2 = "pm2"
    CUSTOM = "custom"


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class DeployEntry(BaseModel):
    """A single recorded deployment event.

    Entries are immutable once created. Rolling back records a new entry
    rather than editing an old one.

    Attributes:
        tag: Deployed identifier (image reference, version, commit, pm2 name)
        mechanism_kind: Deployment mechanism, persisted as ``type``
        timestamp: Time the entry was recorded
        service: Container or process name for docker and pm2 deployments
        metadata: Free-form annotations such as author, ticket or rollbackFrom
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    tag: str = Field(..., min_length=1, description="Deployed tag")
    mechanism_kind: MechanismKind = Field(
        ..., alias="type", description="Deployment mechanism"
    )
    timestamp: datetime = Field(
        default_factory=utc_now, description="Time the deployment was recorded"
    )
    service: str | None = Field(default=None, description="Target service name")
    metadata: dict[str, str] | None = Field(
        default=None, description="Free-form string annotations"
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Return the persisted/JSON-output form of this entry."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DeployHistory(BaseModel):
    """Ordered log of deployment entries.

    The last entry is the current deployment and the one before it is the
    previous deployment. The log only grows, except for an explicit clear.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    format_version: int = Field(
        default=HISTORY_FORMAT_VERSION,
        alias="version",
        description="Persisted schema version",
    )
    entries: list[DeployEntry] = Field(
        default_factory=list, description="Entries in chronological order"
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Return the persisted form of the whole history."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
