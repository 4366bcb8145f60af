"""Human-readable output for the rollback CLI.

All output goes through click so colors are stripped when stdout is not a
terminal.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import click

from rollback import __version__
from rollback.deploy.dispatcher import DRY_RUN_PREFIX
from rollback.models.history import DeployEntry, MechanismKind
from rollback.models.results import RollbackResult, StatusSummary

TYPE_ICONS: dict[str, tuple[str, str]] = {
    MechanismKind.DOCKER.value: ("🐳", "blue"),
    MechanismKind.GIT.value: ("📦", "green"),
    MechanismKind.PM2.value: ("⚡", "magenta"),
}
DEFAULT_ICON = ("📌", "bright_black")


def echo_json(payload: Any) -> None:
    """Print a payload as indented JSON on stdout."""
    click.echo(json.dumps(payload, indent=2))


def type_icon(kind: MechanismKind | str) -> str:
    """Return the colored icon for a mechanism kind."""
    value = kind.value if isinstance(kind, MechanismKind) else kind
    icon, color = TYPE_ICONS.get(value, DEFAULT_ICON)
    return click.style(icon, fg=color)


def time_ago(timestamp: datetime, now: datetime | None = None) -> str:
    """Format a timestamp relative to now (``just now``, ``5m ago``, ``2d ago``)."""
    now = now or datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    mins = int((now - timestamp).total_seconds() // 60)
    if mins < 1:
        return "just now"
    if mins < 60:
        return f"{mins}m ago"
    hours = mins // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def dim(text: str) -> str:
    return click.style(text, dim=True)


def print_banner() -> None:
    """Print the tool banner."""
    click.echo()
    click.secho(f"  rollback v{__version__}", fg="blue", bold=True)
    click.secho("  Deployment History & Rollback", fg="blue")
    click.echo()


def print_entry_details(entry: DeployEntry, total: int) -> None:
    """Print the details of a newly recorded entry."""
    click.secho("  Recorded deployment", fg="green", bold=True)
    click.echo()
    click.echo(f"  Tag:       {type_icon(entry.mechanism_kind)} {entry.tag}")
    click.echo(f"  Type:      {entry.mechanism_kind.value}")
    if entry.service:
        click.echo(f"  Service:   {entry.service}")
    click.echo(f"  Deploy #:  {total}")
    for key, value in (entry.metadata or {}).items():
        click.echo(f"  {key}:  {value}")
    click.echo()


def print_list(entries: list[DeployEntry], total: int) -> None:
    """Print history entries, most recent first."""
    if not entries:
        click.echo(
            "  "
            + dim("No deployments recorded yet. Use 'rollback push <tag>' to start.")
        )
        click.echo()
        return

    click.echo(
        "  "
        + click.style("Deployment History", fg="cyan", bold=True)
        + " "
        + dim(f"({total} total, showing last {len(entries)})")
    )
    click.echo()

    for index, entry in enumerate(entries):
        marker = click.style(" CURRENT ", fg="green") if index == 0 else " " * 9
        service = " " + dim(f"[{entry.service}]") if entry.service else ""
        click.echo(
            f"  {marker} {type_icon(entry.mechanism_kind)} "
            f"{click.style(entry.tag, bold=True)}{service}  "
            f"{dim(time_ago(entry.timestamp))}"
        )
        for key, value in (entry.metadata or {}).items():
            click.echo("             " + dim(f"{key}: {value}"))

    click.echo()


def print_status(summary: StatusSummary) -> None:
    """Print current/previous deployment and per-type counts."""
    if summary.current is None:
        click.echo("  " + dim("No deployments tracked."))
        click.echo()
        return

    current = summary.current
    click.echo(
        f"  {click.style('Current:', bold=True)}    {type_icon(current.mechanism_kind)} "
        f"{click.style(current.tag, fg='green')}  {dim(time_ago(current.timestamp))}"
    )
    if summary.previous is not None:
        previous = summary.previous
        click.echo(
            f"  {click.style('Previous:', bold=True)}   "
            f"{type_icon(previous.mechanism_kind)} "
            f"{click.style(previous.tag, fg='yellow')}  "
            f"{dim(time_ago(previous.timestamp))}"
        )
    click.echo(f"  {click.style('Total deploys:', bold=True)} {summary.total_count}")
    by_type = ", ".join(f"{kind}: {count}" for kind, count in summary.count_by_kind.items())
    click.echo(f"  {click.style('By type:', bold=True)}    {dim(by_type)}")
    click.echo()


def print_rollback_start(dry_run: bool) -> None:
    """Print the banner and dry-run notice before a rollback."""
    print_banner()
    if dry_run:
        click.echo(
            "  " + click.style("DRY RUN", fg="yellow", bold=True)
            + " - Nothing will be executed."
        )
        click.echo()


def print_rollback_result(result: RollbackResult) -> None:
    """Print the outcome of a successful rollback."""
    if result.dispatch.manual:
        click.echo(
            "  " + click.style("Custom type:", fg="yellow")
            + f" Can't auto-rollback. Target tag: {result.to_entry.tag}"
        )
        click.echo("  " + dim("Record the tag and run your rollback manually."))

    click.echo()
    click.secho("  Rollback complete!", fg="green", bold=True)
    click.echo()


def report_line(message: str) -> None:
    """Print a dispatcher progress line."""
    if message.startswith(DRY_RUN_PREFIX):
        command = message.removeprefix(DRY_RUN_PREFIX).strip()
        click.echo(f"  {click.style(DRY_RUN_PREFIX, fg='yellow')} {dim(command)}")
    else:
        click.echo(f"  {message}")
