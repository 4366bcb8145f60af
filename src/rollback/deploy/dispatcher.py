"""Rollback dispatch: map a target entry to the external commands to run.

Each mechanism kind has a planner that turns the target entry into an
ordered plan of steps. Every step declares what happens when its command
fails: abort the rollback, ignore the failure, or run its fallback steps.
The same step walker drives both real execution and dry runs; a dry run only
replaces the final "run it" call with a report of the command.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from rollback.deploy.detector import PM2_PREFIX
from rollback.deploy.executor import Command, CommandExecutor, CommandKind, CommandResult
from rollback.lib.errors import DispatchError
from rollback.lib.logging_config import get_logger
from rollback.models.history import DeployEntry, MechanismKind
from rollback.models.results import DispatchResult

logger = get_logger(__name__)

Reporter = Callable[[str], None]

DRY_RUN_PREFIX = "[DRY RUN]"


class FailurePolicy(str, Enum):
    """What a failed step does to the rest of the plan."""

    ABORT = "abort"
    IGNORE = "ignore"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Step:
    """One command in a rollback plan.

    Attributes:
        command: Command to run
        on_failure: Policy applied when the command fails
        fallback: Steps run instead when on_failure is FALLBACK
    """

    command: Command
    on_failure: FailurePolicy = FailurePolicy.ABORT
    fallback: tuple[Step, ...] = ()


def pm2_process_name(tag: str) -> str:
    """Return the pm2 process name for a tag.

    A leading ``pm2:`` is removed and anything after the first ``@`` is
    dropped, so ``pm2:app@1.0`` restarts ``app``.
    """
    return tag.removeprefix(PM2_PREFIX).split("@", 1)[0]


def _noop_reporter(message: str) -> None:
    pass


class RollbackDispatcher:
    """Runs the external commands that roll a deployment back to a target."""

    HEADINGS = {
        MechanismKind.DOCKER: "Docker rollback",
        MechanismKind.GIT: "Git rollback",
        MechanismKind.PM2: "PM2 rollback",
    }

    def __init__(
        self,
        executor: CommandExecutor,
        reporter: Reporter | None = None,
        compose_file: str | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            executor: Executor used for real (non dry-run) commands
            reporter: Receives progress lines and dry-run command reports
            compose_file: Compose file used for docker service restarts
        """
        self.executor = executor
        self.reporter = reporter or _noop_reporter
        self.compose_file = compose_file
        self._planners: dict[
            MechanismKind, Callable[[DeployEntry, str | None], tuple[Step, ...]]
        ] = {
            MechanismKind.DOCKER: self._plan_docker,
            MechanismKind.GIT: self._plan_git,
            MechanismKind.PM2: self._plan_pm2,
            MechanismKind.CUSTOM: self._plan_custom,
        }

    def plan(
        self, target: DeployEntry, service_override: str | None = None
    ) -> tuple[Step, ...]:
        """Return the steps that restore the target deployment."""
        return self._planners[target.mechanism_kind](target, service_override)

    def execute(
        self,
        current: DeployEntry,
        target: DeployEntry,
        dry_run: bool,
        service_override: str | None = None,
    ) -> DispatchResult:
        """Roll back from current to target.

        The desired state is rebuilt from the target entry alone; current is
        only used for reporting.

        Args:
            current: Entry that is deployed now
            target: Entry to deploy again
            dry_run: Report commands instead of running them
            service_override: Service name taking precedence over target.service

        Returns:
            DispatchResult describing the commands that ran or would run

        Raises:
            DispatchError: If a step whose failure is fatal fails
        """
        kind = target.mechanism_kind
        logger.info(
            f"Dispatching {kind.value} rollback {current.tag} -> {target.tag} "
            f"(dry_run={dry_run})"
        )
        result = DispatchResult(kind=kind, tag=target.tag, dry_run=dry_run)

        if kind == MechanismKind.CUSTOM:
            result.manual = True
            return result

        self.reporter(f"{self.HEADINGS[kind]}: {current.tag} -> {target.tag}")
        steps = self.plan(target, service_override)
        if not steps:
            logger.info(f"Nothing to run for {target.tag}")
        self._run_steps(steps, dry_run, result.commands)
        return result

    def _run_steps(
        self, steps: tuple[Step, ...], dry_run: bool, executed: list[str]
    ) -> None:
        for step in steps:
            command = step.command
            executed.append(command.description)
            outcome = self._invoke(command, dry_run)
            if outcome.success:
                continue

            if step.on_failure == FailurePolicy.IGNORE:
                logger.debug(
                    f"Ignoring failure of {command.description}: {outcome.error_detail}"
                )
                continue

            if step.on_failure == FailurePolicy.FALLBACK:
                logger.info(
                    f"{command.description} failed, falling back: "
                    f"{outcome.error_detail}"
                )
                self.reporter(self._fallback_notice(command))
                self._run_steps(step.fallback, dry_run, executed)
                continue

            raise DispatchError(command.description, outcome.error_detail)

    def _invoke(self, command: Command, dry_run: bool) -> CommandResult:
        if dry_run:
            self.reporter(f"{DRY_RUN_PREFIX} {command.description}")
            return CommandResult(success=True)
        return self.executor.run(command)

    @staticmethod
    def _fallback_notice(command: Command) -> str:
        if command.kind == CommandKind.SERVICE_UP:
            return "docker compose not available, trying docker run..."
        return f"{command.description} failed, trying fallback..."

    def _plan_docker(
        self, target: DeployEntry, service_override: str | None
    ) -> tuple[Step, ...]:
        service = service_override or target.service or ""

        # Without an image:tag reference there is nothing to pull or run
        if ":" not in target.tag:
            return ()

        pull = Step(Command(CommandKind.IMAGE_PULL, target=target.tag))
        if not service:
            return (pull,)

        restart = Step(
            Command(
                CommandKind.SERVICE_UP,
                target=target.tag,
                service=service,
                compose_file=self.compose_file,
            ),
            on_failure=FailurePolicy.FALLBACK,
            fallback=(
                Step(
                    Command(CommandKind.CONTAINER_STOP, service=service),
                    on_failure=FailurePolicy.IGNORE,
                ),
                Step(
                    Command(CommandKind.CONTAINER_RUN, target=target.tag, service=service)
                ),
            ),
        )
        return (pull, restart)

    def _plan_git(
        self, target: DeployEntry, service_override: str | None
    ) -> tuple[Step, ...]:
        return (Step(Command(CommandKind.CHECKOUT, target=target.tag)),)

    def _plan_pm2(
        self, target: DeployEntry, service_override: str | None
    ) -> tuple[Step, ...]:
        name = pm2_process_name(target.tag)
        return (Step(Command(CommandKind.PROCESS_RESTART, target=name)),)

    def _plan_custom(
        self, target: DeployEntry, service_override: str | None
    ) -> tuple[Step, ...]:
        return ()
