"""Deployment history persistence helpers.

The history file is read once per invocation and rewritten whole on every
mutation. There is no locking: concurrent invocations against the same file
can lose entries, so one operator or CI job at a time is assumed.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from rollback.lib.errors import PersistenceError
from rollback.lib.logging_config import get_logger
from rollback.models.history import HISTORY_FORMAT_VERSION, DeployEntry, DeployHistory

logger = get_logger(__name__)


def empty_history() -> DeployHistory:
    """Return a fresh history with the current format version."""
    return DeployHistory(format_version=HISTORY_FORMAT_VERSION, entries=[])


def current_entry(history: DeployHistory) -> DeployEntry | None:
    """Return the most recent entry, or None for an empty history."""
    return history.entries[-1] if history.entries else None


def previous_entry(history: DeployHistory) -> DeployEntry | None:
    """Return the second most recent entry, or None with fewer than two."""
    return history.entries[-2] if len(history.entries) > 1 else None


def find_most_recent_by_tag(history: DeployHistory, tag: str) -> DeployEntry | None:
    """Return the latest entry recorded with the given tag.

    The search runs from the end of the log, so a tag pushed more than once
    resolves to its most recent occurrence.
    """
    for entry in reversed(history.entries):
        if entry.tag == tag:
            return entry
    return None


class HistoryStore:
    """Loads and persists the deployment history file.

    Example:
        >>> store = HistoryStore(Path(".rollback-history.json"))
        >>> history = store.load()
        >>> history = store.append(history, entry)
    """

    current = staticmethod(current_entry)
    previous = staticmethod(previous_entry)
    find_most_recent_by_tag = staticmethod(find_most_recent_by_tag)

    def __init__(self, path: Path) -> None:
        """Initialize the store for a history file path.

        Args:
            path: Location of the JSON history file
        """
        self.path = path

    def load(self) -> DeployHistory:
        """Load history from disk.

        A missing, empty, unreadable or malformed file yields an empty
        history. Corruption is only reported at INFO level.

        Returns:
            The persisted history, or an empty one
        """
        if not self.path.exists():
            return empty_history()

        try:
            content = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.info(f"Could not read history at {self.path}, starting fresh: {exc}")
            return empty_history()

        if not content.strip():
            return empty_history()

        try:
            return DeployHistory.model_validate_json(content)
        except ValidationError as exc:
            logger.info(
                f"Ignoring unparsable history at {self.path}, starting fresh: "
                f"{exc.error_count()} error(s)"
            )
            return empty_history()

    def save(self, history: DeployHistory) -> None:
        """Persist the whole history, replacing the file content.

        Raises:
            PersistenceError: If the file cannot be written
        """
        payload = json.dumps(history.to_json_dict(), indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(payload + "\n", encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(str(self.path), str(exc)) from exc
        logger.debug(f"Saved {len(history.entries)} entries to {self.path}")

    def append(self, history: DeployHistory, entry: DeployEntry) -> DeployHistory:
        """Return a new history with entry appended, after persisting it."""
        updated = history.model_copy(update={"entries": [*history.entries, entry]})
        self.save(updated)
        return updated

    def clear(self, history: DeployHistory) -> DeployHistory:
        """Return an empty history with the same format version, after persisting it."""
        cleared = history.model_copy(update={"entries": []})
        self.save(cleared)
        return cleared
