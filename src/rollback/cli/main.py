"""Command-line interface for recording deployments and rolling back.

Implements the ``rollback`` command group: push, list, status, now, to and
clear. Every user-facing failure exits with status 1.
"""

from __future__ import annotations

import sys
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from typing import Any

import click

from rollback import __version__
from rollback.cli import render
from rollback.config.loader import load_config, resolve_history_path
from rollback.deploy.controller import RolloutController
from rollback.deploy.dispatcher import Reporter, RollbackDispatcher
from rollback.deploy.executor import create_executor
from rollback.deploy.state import HistoryStore
from rollback.lib.errors import RollbackError
from rollback.lib.logging_config import get_logger, setup_logging
from rollback.models.config import RollbackConfig
from rollback.models.history import MechanismKind

logger = get_logger(__name__)

KIND_CHOICES = [kind.value for kind in MechanismKind]


class RollbackGroup(click.Group):
    """Command group that reports usage errors with exit status 1.

    Covers unknown commands and invalid options of the group and of every
    subcommand.
    """

    def make_context(
        self,
        info_name: str | None,
        args: list[str],
        parent: click.Context | None = None,
        **extra: Any,
    ) -> click.Context:
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError as e:
            e.exit_code = 1
            raise

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except click.UsageError as e:
            e.exit_code = 1
            raise


@contextmanager
def handle_command_errors(
    action: str, json_output: bool, failure_label: str = "Error"
) -> Generator[None, None, None]:
    """Context manager for consistent error handling in commands.

    Rollback errors are shown as a red message on stderr, or as a JSON failure
    object on stdout when ``--json`` is set. Both exit with status 1.
    """
    try:
        yield
    except RollbackError as e:
        logger.debug(f"{action} failed: {e}")
        _report_failure(action, json_output, failure_label, str(e), e.error_type)
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        _report_failure(action, json_output, failure_label, str(e), type(e).__name__)
        sys.exit(1)


def _report_failure(
    action: str, json_output: bool, label: str, message: str, error_type: str
) -> None:
    if json_output:
        render.echo_json(
            {
                "action": action,
                "success": False,
                "error": message,
                "errorType": error_type,
            }
        )
        return
    click.secho(f"{label}: {message}", fg="red", err=True)


def parse_meta(values: Iterable[str]) -> dict[str, str]:
    """Parse repeated ``--meta key=value`` options.

    Values without ``=`` or with an empty key are skipped with a warning.
    """
    metadata: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            logger.warning(f"Ignoring --meta value not in key=value form: {item!r}")
            continue
        metadata[key] = value
    return metadata


def _create_controller(
    ctx: click.Context, reporter: Reporter | None = None
) -> tuple[RolloutController, RollbackConfig]:
    """Load configuration and wire the controller for one command."""
    options: dict[str, Any] = ctx.obj or {}
    config = load_config(
        config_path=options.get("config_path"),
        cli_overrides={"history_file": options.get("history_file")},
    )
    history_path = resolve_history_path(config)
    logger.debug(f"Using history file {history_path}")

    dispatcher = RollbackDispatcher(
        create_executor(config),
        reporter=reporter,
        compose_file=config.compose_file,
    )
    return RolloutController(HistoryStore(history_path), dispatcher), config


def _json_option(func: Any) -> Any:
    return click.option(
        "--json", "json_output", is_flag=True, help="Output as JSON"
    )(func)


def _dry_run_option(func: Any) -> Any:
    return click.option(
        "--dry-run",
        is_flag=True,
        help="Show what would happen without executing",
    )(func)


@click.group(
    name="rollback",
    cls=RollbackGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(__version__, prog_name="rollback")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Configuration file (default: .rollback.yaml if present)",
)
@click.option(
    "--history-file",
    type=str,
    default=None,
    help="History file path (default: .rollback-history.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: str | None,
    history_file: str | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """Deployment history & rollback.

    Records deployments in a local history file and rolls back by deploying
    an earlier tag again with docker, git or pm2.

    Example:

        rollback push myapp:v2.1.0 --service web

        rollback now --dry-run

        rollback to v1.5.3
    """
    setup_logging(verbose=verbose, quiet=quiet)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["history_file"] = history_file

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.argument("tag", required=False, default="")
@click.option(
    "--type",
    "kind",
    type=click.Choice(KIND_CHOICES),
    default=None,
    help="Force deploy type instead of detecting it from the tag",
)
@click.option("--service", default=None, help="Service or container name")
@click.option(
    "--meta",
    multiple=True,
    metavar="KEY=VALUE",
    help="Attach metadata to the deployment (repeatable)",
)
@_json_option
@click.pass_context
def push(
    ctx: click.Context,
    tag: str,
    kind: str | None,
    service: str | None,
    meta: tuple[str, ...],
    json_output: bool,
) -> None:
    """Record a new deployment of TAG.

    Example:

        rollback push v1.5.3

        rollback push v3.0.0 --meta author=kai --meta ticket=JIRA-123
    """
    with handle_command_errors("push", json_output):
        controller, _ = _create_controller(ctx)
        entry = controller.push(
            tag, kind=kind, service=service, metadata=parse_meta(meta)
        )

        if json_output:
            render.echo_json(entry.to_json_dict())
            return

        render.print_banner()
        render.print_entry_details(entry, controller.total_count())


@main.command(name="list")
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=None,
    help="Number of entries to show (default: 20)",
)
@_json_option
@click.pass_context
def list_command(ctx: click.Context, limit: int | None, json_output: bool) -> None:
    """Show deployment history, most recent first."""
    with handle_command_errors("list", json_output):
        controller, config = _create_controller(ctx)
        entries = controller.list_entries(limit or config.default_limit)

        if json_output:
            render.echo_json([entry.to_json_dict() for entry in entries])
            return

        render.print_banner()
        render.print_list(entries, controller.total_count())


@main.command()
@_json_option
@click.pass_context
def status(ctx: click.Context, json_output: bool) -> None:
    """Show the current and previous deployment."""
    with handle_command_errors("status", json_output):
        controller, _ = _create_controller(ctx)
        summary = controller.status()

        if json_output:
            render.echo_json(summary.to_json())
            return

        render.print_banner()
        render.print_status(summary)


@main.command()
@_dry_run_option
@click.option("--service", default=None, help="Override the recorded service name")
@_json_option
@click.pass_context
def now(
    ctx: click.Context, dry_run: bool, service: str | None, json_output: bool
) -> None:
    """Roll back to the previous deployment."""
    with handle_command_errors("rollback", json_output, "Rollback failed"):
        reporter = None if json_output else render.report_line
        controller, _ = _create_controller(ctx, reporter=reporter)
        if not json_output:
            render.print_rollback_start(dry_run)

        result = controller.rollback_to_previous(
            dry_run=dry_run, service_override=service
        )

        if json_output:
            render.echo_json(result.to_json())
            return
        render.print_rollback_result(result)


@main.command()
@click.argument("tag", required=False, default="")
@_dry_run_option
@click.option("--service", default=None, help="Override the recorded service name")
@_json_option
@click.pass_context
def to(
    ctx: click.Context,
    tag: str,
    dry_run: bool,
    service: str | None,
    json_output: bool,
) -> None:
    """Roll back to the most recent deployment of TAG."""
    with handle_command_errors("rollback", json_output, "Rollback failed"):
        reporter = None if json_output else render.report_line
        controller, _ = _create_controller(ctx, reporter=reporter)
        if not json_output:
            render.print_rollback_start(dry_run)

        result = controller.rollback_to_tag(
            tag, dry_run=dry_run, service_override=service
        )

        if json_output:
            render.echo_json(result.to_json())
            return
        render.print_rollback_result(result)


@main.command()
@_dry_run_option
@_json_option
@click.pass_context
def clear(ctx: click.Context, dry_run: bool, json_output: bool) -> None:
    """Clear the deployment history."""
    with handle_command_errors("clear", json_output):
        controller, _ = _create_controller(ctx)
        count = controller.clear(dry_run=dry_run)

        if json_output:
            if dry_run:
                render.echo_json({"action": "clear", "dryRun": True, "wouldClear": count})
            else:
                render.echo_json({"action": "clear", "entriesCleared": count})
            return

        if dry_run:
            click.echo(
                "  " + click.style("[DRY RUN]", fg="yellow")
                + f" Would clear {count} entries."
            )
            return

        render.print_banner()
        click.secho(f"  Cleared {count} deployment entries.", fg="green")
        click.echo()


if __name__ == "__main__":
    main()
