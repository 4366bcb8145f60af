"""External command execution for rollback steps.

Rollback steps are described as ``Command`` values from a closed set of
kinds. Executors turn them into real invocations: ``SubprocessExecutor``
shells out to docker/git/pm2, and ``DockerEngineExecutor`` performs the
container steps through the Docker SDK instead.
"""

from __future__ import annotations

import shlex
import subprocess  # nosec B404
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import docker
from docker.errors import DockerException, NotFound
from docker.utils import parse_repository_tag

from rollback.lib.errors import DockerNotAvailableError
from rollback.lib.logging_config import get_logger
from rollback.models.config import DockerEngine, RollbackConfig

if TYPE_CHECKING:
    from docker import DockerClient

logger = get_logger(__name__)


class CommandKind(str, Enum):
    """External operations a rollback can perform."""

    IMAGE_PULL = "image_pull"
    SERVICE_UP = "service_up"
    CONTAINER_STOP = "container_stop"
    CONTAINER_RUN = "container_run"
    CHECKOUT = "checkout"
    PROCESS_RESTART = "process_restart"


@dataclass(frozen=True)
class Command:
    """A single external invocation.

    Attributes:
        kind: Operation to perform
        target: Image reference, git ref or process name
        service: Container/service name for service and container operations
        compose_file: Optional compose file for SERVICE_UP
    """

    kind: CommandKind
    target: str = ""
    service: str | None = None
    compose_file: str | None = None

    def argv(self) -> list[str]:
        """Return the command line equivalent of this command."""
        if self.kind == CommandKind.IMAGE_PULL:
            return ["docker", "pull", self.target]
        if self.kind == CommandKind.SERVICE_UP:
            argv = ["docker", "compose"]
            if self.compose_file:
                argv += ["-f", self.compose_file]
            return [*argv, "up", "-d", self.service or ""]
        if self.kind == CommandKind.CONTAINER_STOP:
            return ["docker", "stop", self.service or ""]
        if self.kind == CommandKind.CONTAINER_RUN:
            return ["docker", "run", "-d", "--name", self.service or "", self.target]
        if self.kind == CommandKind.CHECKOUT:
            return ["git", "checkout", self.target]
        if self.kind == CommandKind.PROCESS_RESTART:
            return ["pm2", "restart", self.target]
        raise ValueError(f"Unknown command kind: {self.kind}")

    @property
    def description(self) -> str:
        """Shell-quoted command line, used for reporting and errors."""
        return shlex.join(self.argv())


@dataclass
class CommandResult:
    """Outcome of running a command.

    Attributes:
        success: True when the command completed with exit status 0
        output: Captured standard output
        error_detail: Error output or exception text on failure
    """

    success: bool
    output: str = ""
    error_detail: str = ""


class CommandExecutor(ABC):
    """Abstract base class for command executors."""

    @abstractmethod
    def run(self, command: Command) -> CommandResult:
        """Run a command and report its outcome.

        Failures are returned as unsuccessful results, never raised.

        Args:
            command: The command to run

        Returns:
            CommandResult with success flag, output and error detail
        """


class SubprocessExecutor(CommandExecutor):
    """Runs commands as local processes."""

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize the executor.

        Args:
            timeout: Optional per-command timeout in seconds
        """
        self.timeout = timeout

    def run(self, command: Command) -> CommandResult:
        """Run the command's argv and capture its output."""
        argv = command.argv()
        logger.debug(f"Running: {command.description}")
        try:
            result = subprocess.run(  # noqa: S603  # nosec B603
                argv,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            return CommandResult(
                success=False, error_detail=f"{argv[0]}: command not found"
            )
        except subprocess.TimeoutExpired:
            return CommandResult(
                success=False,
                error_detail=f"Timed out after {self.timeout} seconds",
            )
        except OSError as e:
            return CommandResult(success=False, error_detail=str(e))

        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            return CommandResult(
                success=False,
                output=result.stdout.strip(),
                error_detail=detail or f"exit status {result.returncode}",
            )
        return CommandResult(success=True, output=result.stdout.strip())


class DockerEngineExecutor(SubprocessExecutor):
    """Runs container steps through the Docker SDK.

    Image pulls and container stop/run go to the Docker daemon directly;
    compose, git and pm2 commands still run as processes.
    """

    SDK_KINDS = frozenset(
        {CommandKind.IMAGE_PULL, CommandKind.CONTAINER_STOP, CommandKind.CONTAINER_RUN}
    )

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize the executor; the daemon is contacted on first use."""
        super().__init__(timeout=timeout)
        self._client: DockerClient | None = None

    @property
    def client(self) -> DockerClient:
        """Return a connected Docker client.

        Raises:
            DockerNotAvailableError: If the Docker daemon is not available
        """
        if self._client is None:
            try:
                self._client = docker.from_env()  # type: ignore[attr-defined]
            except DockerException as e:
                raise DockerNotAvailableError(operation="rollback") from e
        return self._client

    def run(self, command: Command) -> CommandResult:
        """Run container steps via the SDK, anything else via subprocess."""
        if command.kind not in self.SDK_KINDS:
            return super().run(command)

        logger.debug(f"Docker SDK: {command.description}")
        try:
            if command.kind == CommandKind.IMAGE_PULL:
                repository, tag = parse_repository_tag(command.target)
                image = self.client.images.pull(repository, tag=tag or "latest")
                return CommandResult(success=True, output=image.id or "")
            if command.kind == CommandKind.CONTAINER_STOP:
                self.client.containers.get(command.service or "").stop()
                return CommandResult(success=True)
            container = self.client.containers.run(
                command.target, name=command.service, detach=True
            )
            return CommandResult(success=True, output=container.id or "")
        except DockerNotAvailableError as e:
            return CommandResult(success=False, error_detail=e.message)
        except NotFound as e:
            return CommandResult(success=False, error_detail=f"Not found: {e}")
        except DockerException as e:
            return CommandResult(success=False, error_detail=str(e))


def create_executor(config: RollbackConfig) -> CommandExecutor:
    """Create the command executor selected by the configuration."""
    if config.docker_engine == DockerEngine.SDK:
        return DockerEngineExecutor(timeout=config.command_timeout)
    return SubprocessExecutor(timeout=config.command_timeout)
