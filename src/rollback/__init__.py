"""rollback - deployment history and rollback for a single host.

Records every deployment tag in a local JSON history file and rolls back by
deploying an earlier tag again through docker, git or pm2.

Main features:
- Tag type detection (docker image, git hash/version, pm2 process, custom)
- Append-only history with current/previous semantics
- Rollback to the previous deployment or to any recorded tag
- Dry-run mode showing the exact commands that would run
- JSON output for CI pipelines
"""

from rollback.lib.errors import (
    DispatchError,
    InsufficientHistoryError,
    InvalidArgumentError,
    RollbackError,
    TagNotFoundError,
)

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "DispatchError",
    "InsufficientHistoryError",
    "InvalidArgumentError",
    "RollbackError",
    "TagNotFoundError",
]
