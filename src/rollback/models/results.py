"""Result models returned by the rollout controller."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from rollback.models.history import DeployEntry, MechanismKind


@dataclass
class DispatchResult:
    """Outcome of a successful rollback dispatch.

    Attributes:
        kind: Mechanism the target was dispatched with
        tag: Target tag
        commands: Commands executed, or reported in dry-run, in order
        dry_run: Whether execution was simulated
        manual: True when the operator has to roll back by hand (custom kind)
    """

    kind: MechanismKind
    tag: str
    commands: list[str] = field(default_factory=list)
    dry_run: bool = False
    manual: bool = False


@dataclass
class RollbackResult:
    """Outcome of a rollback command.

    Attributes:
        from_entry: Entry that was current before the rollback
        to_entry: Entry that was rolled back to
        dry_run: Whether execution was simulated
        dispatch: Details of the dispatched commands
        recorded: Entry appended to the history, None for dry runs
    """

    from_entry: DeployEntry
    to_entry: DeployEntry
    dry_run: bool
    dispatch: DispatchResult
    recorded: DeployEntry | None = None

    def to_json(self) -> dict[str, Any]:
        """Return the machine-readable rollback result."""
        return {
            "action": "rollback",
            "from": self.from_entry.tag,
            "to": self.to_entry.tag,
            "dryRun": self.dry_run,
            "success": True,
            "commands": list(self.dispatch.commands),
            "manual": self.dispatch.manual,
        }


@dataclass
class StatusSummary:
    """Read-only summary of the deployment history."""

    current: DeployEntry | None
    previous: DeployEntry | None
    total_count: int
    count_by_kind: dict[str, int] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        """Return the machine-readable status object."""
        return {
            "current": self.current.to_json_dict() if self.current else None,
            "previous": self.previous.to_json_dict() if self.previous else None,
            "totalDeploys": self.total_count,
            "byType": dict(self.count_by_kind),
        }
