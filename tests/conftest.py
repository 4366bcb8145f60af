"""Pytest configuration and shared fixtures for rollback tests."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from rollback.deploy.executor import Command, CommandExecutor, CommandKind, CommandResult
from rollback.lib.logging_config import ROOT_LOGGER_NAME
from rollback.models.history import DeployEntry, MechanismKind

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeExecutor(CommandExecutor):
    """Executor that records commands instead of running them.

    Commands whose kind is listed in ``failures`` return an unsuccessful
    result with the mapped detail.
    """

    def __init__(self, failures: dict[CommandKind, str] | None = None) -> None:
        self.failures = failures or {}
        self.commands: list[Command] = []

    def run(self, command: Command) -> CommandResult:
        self.commands.append(command)
        if command.kind in self.failures:
            return CommandResult(success=False, error_detail=self.failures[command.kind])
        return CommandResult(success=True, output="ok")

    @property
    def descriptions(self) -> list[str]:
        return [command.description for command in self.commands]


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None]:
    """Drop handlers installed by setup_logging during a test."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def isolated_env() -> Generator[dict[str, str]]:
    """Provide isolated environment variables for testing.

    Removes ROLLBACK_* variables and restores the environment afterwards.
    """
    original_env = os.environ.copy()
    for name in list(os.environ):
        if name.startswith("ROLLBACK_"):
            del os.environ[name]
    yield original_env
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def history_path(tmp_path: Path) -> Path:
    """Path of a history file inside a temporary directory."""
    return tmp_path / ".rollback-history.json"


@pytest.fixture
def fake_executor() -> FakeExecutor:
    """Executor that records commands and always succeeds."""
    return FakeExecutor()


@pytest.fixture
def make_entry() -> Callable[..., DeployEntry]:
    """Factory for DeployEntry instances with increasing timestamps."""
    counter = {"n": 0}

    def _make(
        tag: str,
        kind: MechanismKind = MechanismKind.GIT,
        **kwargs: Any,
    ) -> DeployEntry:
        counter["n"] += 1
        kwargs.setdefault("timestamp", BASE_TIME + timedelta(minutes=counter["n"]))
        return DeployEntry(tag=tag, mechanism_kind=kind, **kwargs)

    return _make


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Deterministic clock advancing one minute per call."""
    ticks = {"n": 0}

    def _now() -> datetime:
        ticks["n"] += 1
        return BASE_TIME + timedelta(hours=1, minutes=ticks["n"])

    return _now


def pytest_configure(config: Any) -> None:
    """Configure pytest with marker options."""
    config.addinivalue_line(
        "markers",
        "unit: marks tests as unit tests",
    )


@pytest.fixture
def make_executor() -> Callable[..., FakeExecutor]:
    """Factory for FakeExecutor instances with configured failures."""
    return FakeExecutor
