"""Command orchestration over the history store and rollback dispatcher.

A rollback never rewinds the log. It deploys an older tag again and records
that as a new entry, so repeated ``now`` calls alternate between the two
most recent tags.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Mapping
from datetime import datetime

from rollback.deploy.detector import resolve_kind
from rollback.deploy.dispatcher import RollbackDispatcher
from rollback.deploy.state import (
    HistoryStore,
    current_entry,
    find_most_recent_by_tag,
    previous_entry,
)
from rollback.lib.errors import (
    InsufficientHistoryError,
    InvalidArgumentError,
    TagNotFoundError,
)
from rollback.lib.logging_config import get_logger
from rollback.models.history import DeployEntry, DeployHistory, MechanismKind, utc_now
from rollback.models.results import RollbackResult, StatusSummary

logger = get_logger(__name__)

ROLLBACK_FROM_KEY = "rollbackFrom"


class RolloutController:
    """Implements the push, list, status, rollback and clear commands.

    The history is loaded from the store at the start of every operation;
    nothing is cached between calls.
    """

    def __init__(
        self,
        store: HistoryStore,
        dispatcher: RollbackDispatcher,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the controller.

        Args:
            store: History persistence
            dispatcher: Executes rollback commands
            clock: Source of entry timestamps
        """
        self.store = store
        self.dispatcher = dispatcher
        self.clock = clock

    def push(
        self,
        tag: str,
        kind: MechanismKind | str | None = None,
        service: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> DeployEntry:
        """Record a new deployment.

        Args:
            tag: Deployed tag
            kind: Mechanism override; detected from the tag when None
            service: Optional container/process name
            metadata: Optional annotations; an empty mapping is stored as absent

        Returns:
            The appended entry

        Raises:
            InvalidArgumentError: If the tag is empty
            PersistenceError: If the history cannot be written
        """
        if not tag:
            raise InvalidArgumentError(
                "tag", "Provide a tag. Example: rollback push v1.0.0"
            )

        entry = DeployEntry(
            tag=tag,
            mechanism_kind=resolve_kind(tag, kind),
            timestamp=self.clock(),
            service=service or None,
            metadata=dict(metadata) if metadata else None,
        )
        history = self.store.append(self.store.load(), entry)
        logger.info(
            f"Recorded {entry.mechanism_kind.value} deployment {tag} "
            f"(#{len(history.entries)})"
        )
        return entry

    def status(self) -> StatusSummary:
        """Summarize the current state of the history."""
        history = self.store.load()
        counts = Counter(entry.mechanism_kind.value for entry in history.entries)
        return StatusSummary(
            current=current_entry(history),
            previous=previous_entry(history),
            total_count=len(history.entries),
            count_by_kind=dict(counts),
        )

    def list_entries(self, limit: int) -> list[DeployEntry]:
        """Return up to ``limit`` entries, most recent first.

        Raises:
            InvalidArgumentError: If limit is less than 1
        """
        if limit < 1:
            raise InvalidArgumentError("limit", "--limit must be at least 1")
        history = self.store.load()
        return list(reversed(history.entries[-limit:]))

    def total_count(self) -> int:
        """Return the number of recorded entries."""
        return len(self.store.load().entries)

    def rollback_to_previous(
        self, dry_run: bool = False, service_override: str | None = None
    ) -> RollbackResult:
        """Roll back to the entry before the current one.

        Raises:
            InsufficientHistoryError: With fewer than two recorded entries
            DispatchError: If a rollback command fails
        """
        history = self.store.load()
        current = current_entry(history)
        target = previous_entry(history)
        if current is None or target is None:
            raise InsufficientHistoryError(len(history.entries))
        return self._rollback(history, current, target, dry_run, service_override)

    def rollback_to_tag(
        self, tag: str, dry_run: bool = False, service_override: str | None = None
    ) -> RollbackResult:
        """Roll back to the most recent entry recorded with ``tag``.

        Raises:
            InvalidArgumentError: If the tag is empty
            TagNotFoundError: If no entry has the tag
            DispatchError: If a rollback command fails
        """
        if not tag:
            raise InvalidArgumentError(
                "tag", "Provide a tag. Example: rollback to v1.0.0"
            )

        history = self.store.load()
        target = find_most_recent_by_tag(history, tag)
        current = current_entry(history)
        if target is None or current is None:
            raise TagNotFoundError(tag)
        return self._rollback(history, current, target, dry_run, service_override)

    def clear(self, dry_run: bool = False) -> int:
        """Empty the history and return how many entries it held.

        In dry-run mode the count is returned and nothing is written.
        """
        history = self.store.load()
        count = len(history.entries)
        if dry_run:
            return count
        self.store.clear(history)
        logger.info(f"Cleared {count} deployment entries")
        return count

    def _rollback(
        self,
        history: DeployHistory,
        current: DeployEntry,
        target: DeployEntry,
        dry_run: bool,
        service_override: str | None,
    ) -> RollbackResult:
        dispatch = self.dispatcher.execute(current, target, dry_run, service_override)
        result = RollbackResult(
            from_entry=current, to_entry=target, dry_run=dry_run, dispatch=dispatch
        )
        if dry_run:
            return result

        # Only recorded after the dispatch succeeded
        recorded = DeployEntry(
            tag=target.tag,
            mechanism_kind=target.mechanism_kind,
            timestamp=self.clock(),
            service=service_override or target.service,
            metadata={ROLLBACK_FROM_KEY: current.tag},
        )
        self.store.append(history, recorded)
        result.recorded = recorded
        logger.info(f"Recorded rollback {current.tag} -> {target.tag}")
        return result
