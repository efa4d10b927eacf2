"""CLI output formatting functions.

This module contains functions for displaying sync summaries, log entries,
stats and mapping rules on the command line.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Optional, Union

import click

from meeting_sync.sync.models import PENDING_STATUS, SyncStatus

if TYPE_CHECKING:
    from meeting_sync.sync.models import MappingRule, SyncLogEntry, SyncRunSummary
    from meeting_sync.sync.stats import SyncLogStats

# Maximum entries listed after a sync run
MAX_RUN_ENTRIES_SHOWN = 10


def status_badge(status: Union[SyncStatus, str]) -> str:
    """
    Render a sync status as a colored, fixed-width label.

    Args:
        status: A SyncStatus, or the display-only "pending" state

    Returns:
        Styled label string

    Raises:
        ValueError: For a status with no rendering
    """
    if status is SyncStatus.PROCESSED:
        return click.style("processed", fg="green")
    if status is SyncStatus.UNMATCHED:
        return click.style("unmatched", fg="yellow")
    if status is SyncStatus.FAILED:
        return click.style("failed   ", fg="red")
    if status == PENDING_STATUS:
        return click.style("pending  ", fg="cyan")
    raise ValueError(f"Unhandled sync status: {status!r}")


def _format_time(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


def format_log_entry(entry: "SyncLogEntry", verbose: bool = False) -> str:
    """
    Format one sync log entry as a single line (two when verbose).

    Args:
        entry: Entry to display
        verbose: Include the meeting id and URL

    Returns:
        Formatted string
    """
    title = entry.title or "(untitled)"
    line = f"{_format_time(entry.synced_at)}  {status_badge(entry.status)}  {title}"

    if entry.status is SyncStatus.PROCESSED:
        line += f" -> {entry.matched_client_name}"
    elif entry.status is SyncStatus.FAILED:
        line += click.style(f"  ({entry.error_message})", fg="red")

    if verbose:
        details = f"id={entry.external_id}"
        if entry.occurred_at:
            details += f", held {_format_time(entry.occurred_at)}"
        if entry.url:
            details += f", {entry.url}"
        line += f"\n      {details}"
    return line


def show_log_entries(
    entries: Sequence["SyncLogEntry"], verbose: bool = False
) -> None:
    """Print log entries, most recent first."""
    if not entries:
        click.echo("No meetings have been synced yet.")
        return
    for entry in entries:
        click.echo(format_log_entry(entry, verbose=verbose))


def show_run_summary(summary: "SyncRunSummary", verbose: bool = False) -> None:
    """
    Display the result of a sync run.

    Args:
        summary: Run summary returned by the sync engine
        verbose: List every new entry instead of the first few
    """
    click.echo("\n" + "=" * 50)
    click.echo(summary.summary())
    click.echo("=" * 50)

    if summary.entries:
        limit = len(summary.entries) if verbose else MAX_RUN_ENTRIES_SHOWN
        click.echo("\nNew log entries:")
        for entry in summary.entries[:limit]:
            click.echo(f"  {format_log_entry(entry)}")
        if len(summary.entries) > limit:
            click.echo(f"  ... and {len(summary.entries) - limit} more")

    if summary.unmatched_count:
        click.echo(
            click.style(
                f"\n{summary.unmatched_count} meeting(s) matched no mapping. "
                "Add one with 'meeting-sync mappings add'.",
                fg="yellow",
            )
        )
    if summary.failed_count:
        click.echo(
            click.style(
                f"\n{summary.failed_count} meeting(s) failed to import. "
                "Fix the cause, then run 'meeting-sync clear-failed' and sync again.",
                fg="yellow",
            )
        )


def show_stats(stats: "SyncLogStats") -> None:
    """Display aggregate sync log stats."""
    click.echo(f"Total meetings: {stats.total}")
    click.echo(f"  {status_badge(SyncStatus.PROCESSED)}  {stats.processed}")
    click.echo(f"  {status_badge(SyncStatus.UNMATCHED)}  {stats.unmatched}")
    click.echo(f"  {status_badge(SyncStatus.FAILED)}  {stats.failed}")
    if stats.last_sync_at:
        click.echo(f"Last sync: {_format_time(stats.last_sync_at)}")
    else:
        click.echo(f"Last sync: {click.style('never', fg='yellow')}")


def show_mappings(rules: Sequence["MappingRule"]) -> None:
    """Display mapping rules in rule order."""
    if not rules:
        click.echo("No mappings configured.")
        return

    width = max(len(rule.pattern) for rule in rules)
    for rule in rules:
        kind = "email " if rule.is_email else "domain"
        pattern = rule.pattern.ljust(width)
        line = f"  [{rule.id}] {kind}  {pattern}  -> {rule.client_name}"
        if rule.created_by:
            line += click.style(f"  (by {rule.created_by})", dim=True)
        click.echo(line)
