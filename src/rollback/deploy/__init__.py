"""Rollback engine.

This package provides tag type detection, the deployment history store,
command execution and the rollback dispatcher and controller.
"""

from rollback.deploy.controller import RolloutController
from rollback.deploy.detector import classify_tag, resolve_kind
from rollback.deploy.dispatcher import FailurePolicy, RollbackDispatcher, Step
from rollback.deploy.executor import (
    Command,
    CommandExecutor,
    CommandKind,
    CommandResult,
    DockerEngineExecutor,
    SubprocessExecutor,
    create_executor,
)
from rollback.deploy.state import HistoryStore

__all__ = [
    "Command",
    "CommandExecutor",
    "CommandKind",
    "CommandResult",
    "DockerEngineExecutor",
    "FailurePolicy",
    "HistoryStore",
    "RollbackDispatcher",
    "RolloutController",
    "Step",
    "SubprocessExecutor",
    "classify_tag",
    "create_executor",
    "resolve_kind",
]
