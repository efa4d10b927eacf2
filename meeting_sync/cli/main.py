"""
Command-line interface for meeting_sync.

Provides CLI commands for running meeting syncs, managing email/domain
mappings, auditing the sync log, and running the sync daemon.

Usage:
    # Show help
    meeting-sync --help

    # Map a client domain and sync the last day of meetings
    meeting-sync mappings add acmecorp.com "Acme Corp"
    meeting-sync sync --since 24h

    # Audit results
    meeting-sync status
    meeting-sync log --status unmatched
"""

import os
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import click

from meeting_sync import __version__
from meeting_sync.api.fathom_api import (
    DEFAULT_API_KEY_ENV,
    DEFAULT_BASE_URL,
    DEFAULT_INITIAL_RETRY_DELAY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_RETRY_DELAY,
    DEFAULT_PAGE_SIZE,
    DEFAULT_TIMEOUT,
    FathomAPI,
)
from meeting_sync.api.webhook import (
    DEFAULT_WEBHOOK_SECRET_ENV,
    WEBHOOK_SECRET_HEADER,
    parse_webhook_payload,
    verify_webhook_secret,
)
from meeting_sync.cli.formatters import (
    show_log_entries,
    show_mappings,
    show_run_summary,
    show_stats,
)
from meeting_sync.config.generator import save_config_file
from meeting_sync.config.loader import DEFAULT_CONFIG_FILE, ConfigError, ConfigLoader
from meeting_sync.daemon import parse_lookback
from meeting_sync.errors import (
    ConflictError,
    FetchError,
    MeetingSyncError,
    NotFoundError,
    PersistError,
    ValidationError,
)
from meeting_sync.storage.db import SyncDatabase
from meeting_sync.storage.sync_log import DEFAULT_LOG_LIMIT
from meeting_sync.sync.models import SyncStatus, parse_timestamp, utc_now
from meeting_sync.sync.resolver import MatchPolicy
from meeting_sync.sync.service import MeetingSyncService
from meeting_sync.utils import resolve_config_dir
from meeting_sync.utils.logging import (
    cleanup_old_logs,
    get_logger,
    get_resolution_log_path,
    setup_logging,
    setup_resolution_logger,
)
from meeting_sync.utils.paths import resolve_database_path

# Default sync window when neither --since nor --created-after is given
DEFAULT_LOOKBACK = "24h"

# Default daemon interval
DEFAULT_DAEMON_INTERVAL = "1h"

STATUS_CHOICES = [status.value for status in SyncStatus]


def get_config_dir(config_dir: str | None) -> Path:
    """Get the configuration directory path."""
    return resolve_config_dir(config_dir)


def get_config_file(config_dir: Path, config_file: str | None) -> Path:
    """Get the configuration file path."""
    if config_file:
        return Path(config_file).expanduser()
    return config_dir / DEFAULT_CONFIG_FILE


def resolve_api_key(config: dict[str, Any]) -> Optional[str]:
    """
    Find the Fathom API key.

    Priority:
        1. fathom_api_key in config (direct key, not recommended)
        2. The environment variable named by fathom_api_key_env
        3. FATHOM_API_KEY

    Returns:
        The API key, or None if none is configured
    """
    api_key = config.get("fathom_api_key")
    if api_key:
        return str(api_key)
    env_var_name = config.get("fathom_api_key_env") or DEFAULT_API_KEY_ENV
    return os.environ.get(env_var_name) or None


def resolve_created_after(
    since: Optional[str],
    created_after: Optional[str],
    config: dict[str, Any],
) -> datetime:
    """
    Work out the sync cutoff from CLI options and config.

    Args:
        since: Lookback window such as "24h" or "7d"
        created_after: Explicit ISO-8601 cutoff
        config: Loaded configuration

    Returns:
        Aware UTC cutoff datetime

    Raises:
        click.UsageError: If both options are given or a value is malformed
    """
    if since and created_after:
        raise click.UsageError("Use either --since or --created-after, not both.")

    if created_after:
        cutoff = parse_timestamp(created_after)
        if cutoff is None:
            raise click.UsageError(
                f"Invalid --created-after value: '{created_after}'. "
                "Use an ISO-8601 timestamp such as 2025-01-15T00:00:00Z."
            )
        return cutoff

    lookback = since or config.get("lookback", DEFAULT_LOOKBACK)
    try:
        return utc_now() - parse_lookback(lookback)
    except ValueError as e:
        raise click.UsageError(str(e)) from e


def build_fathom_api(config: dict[str, Any]) -> FathomAPI:
    """
    Create the Fathom client from configuration.

    Raises:
        FetchError: If no API key is configured
    """
    api_key = resolve_api_key(config)
    if not api_key:
        env_var_name = config.get("fathom_api_key_env") or DEFAULT_API_KEY_ENV
        raise FetchError(
            f"No Fathom API key configured. Set {env_var_name} "
            "or fathom_api_key in config.yaml."
        )
    return FathomAPI(
        api_key=api_key,
        base_url=config.get("fathom_base_url", DEFAULT_BASE_URL),
        timeout=config.get("api_timeout", DEFAULT_TIMEOUT),
        page_size=config.get("api_page_size", DEFAULT_PAGE_SIZE),
        max_retries=config.get("api_max_retries", DEFAULT_MAX_RETRIES),
        initial_retry_delay=config.get(
            "api_initial_retry_delay", DEFAULT_INITIAL_RETRY_DELAY
        ),
        max_retry_delay=config.get("api_max_retry_delay", DEFAULT_MAX_RETRY_DELAY),
    )


def open_service(ctx: click.Context, with_source: bool = False) -> MeetingSyncService:
    """
    Open the database and build the service for a command.

    Args:
        ctx: Click context holding config_dir and config
        with_source: Also build the Fathom client (needed for sync)

    Returns:
        Ready MeetingSyncService

    Raises:
        FetchError: If with_source is set and no API key is configured
    """
    config_dir = ctx.obj["config_dir"]
    config = ctx.obj.get("config", {})

    db_path = resolve_database_path(config_dir, config.get("database_path"))
    db_path.parent.mkdir(parents=True, exist_ok=True)
    database = SyncDatabase(str(db_path))
    database.initialize()
    ctx.obj["db_path"] = db_path

    source = build_fathom_api(config) if with_source else None
    return MeetingSyncService(
        database,
        source=source,
        match_policy=MatchPolicy(
            config.get("match_policy", MatchPolicy.ATTENDEE_ORDER)
        ),
    )


def get_pid_file(config: dict[str, Any]) -> Optional[Path]:
    if config.get("daemon_pid_file"):
        return Path(config["daemon_pid_file"]).expanduser()
    return None


@click.group()
@click.version_option(version=__version__, prog_name="meeting-sync")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging."
)
@click.option(
    "--config-dir",
    "-c",
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar="MEETING_SYNC_CONFIG_DIR",
    help="Configuration directory path (default: ~/.meeting-sync).",
)
@click.option(
    "--config-file",
    "-f",
    type=click.Path(exists=False, file_okay=True, dir_okay=False),
    envvar="MEETING_SYNC_CONFIG_FILE",
    help="Configuration file path (default: <config-dir>/config.yaml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_dir: str | None,
    config_file: str | None,
) -> None:
    """
    Fathom meeting import and client reconciliation.

    Imports recorded meetings, matches their attendees to clients through
    email and domain mappings, and keeps an auditable log of every import.
    """
    ctx.ensure_object(dict)

    resolved_config_dir = get_config_dir(config_dir)
    resolved_config_file = get_config_file(resolved_config_dir, config_file)

    ctx.obj["config_dir"] = resolved_config_dir
    ctx.obj["config_file"] = resolved_config_file

    config: dict[str, Any] = {}
    try:
        loader = ConfigLoader(config_dir=resolved_config_dir)
        config = loader.load_from_file(resolved_config_file)
        if config:
            loader.validate(config)
    except ConfigError as e:
        # Allow the CLI to work without a usable config file
        click.echo(
            click.style(f"Warning: Configuration error: {e}", fg="yellow"), err=True
        )
        config = {}

    ctx.obj["config"] = config

    # CLI flag takes precedence over config
    effective_verbose = verbose or config.get("verbose", False)
    ctx.obj["verbose"] = effective_verbose

    if config.get("log_dir"):
        log_dir = Path(config["log_dir"]).expanduser()
    else:
        log_dir = resolved_config_dir / "logs"
    ctx.obj["log_dir"] = log_dir

    setup_logging(verbose=effective_verbose, log_dir=log_dir, enable_file_logging=True)

    log_retention = config.get("log_retention_count", 10)
    if log_retention > 0:
        cleanup_old_logs(log_dir=log_dir, keep_count=log_retention)


# =============================================================================
# Sync Command
# =============================================================================


@cli.command("sync")
@click.option(
    "--since",
    "-s",
    default=None,
    help="Lookback window, e.g. '30m', '24h', '7d' (default: config or 24h).",
)
@click.option(
    "--created-after",
    default=None,
    help="Only import meetings created after this ISO-8601 timestamp.",
)
@click.option(
    "--dry-run", "-n", is_flag=True, help="Classify meetings without writing anything."
)
@click.pass_context
def sync_command(
    ctx: click.Context,
    since: str | None,
    created_after: str | None,
    dry_run: bool,
) -> None:
    """
    Import new meetings from Fathom.

    Fetches meetings created after the cutoff, skips meetings already in
    the sync log, and matches the rest to clients. Re-running over the same
    window is safe: nothing is imported twice.

    Examples:

        # Import the last day of meetings
        meeting-sync sync

        # Catch up on a week
        meeting-sync sync --since 7d

        # Preview matching without importing
        meeting-sync sync --dry-run
    """
    logger = get_logger(__name__)
    config = ctx.obj.get("config", {})
    verbose = ctx.obj["verbose"]

    cutoff = resolve_created_after(since, created_after, config)

    try:
        service = open_service(ctx, with_source=True)
        setup_resolution_logger(get_resolution_log_path(ctx.obj["log_dir"]))

        if verbose:
            click.echo("Sync configuration:")
            click.echo(f"  Database: {ctx.obj['db_path']}")
            click.echo(f"  Created after: {cutoff.isoformat()}")
            click.echo(f"  Match policy: {service.engine.resolver.policy.value}")
            click.echo(f"  Dry run: {dry_run}")

        mode = "Analyzing" if dry_run else "Importing"
        click.echo(f"{mode} meetings created after {cutoff.isoformat()}...")

        summary = service.run_sync(cutoff, dry_run=dry_run)

    except (FetchError, PersistError) as e:
        logger.error(f"Sync failed: {e}")
        click.echo(click.style(f"\nSync failed: {e}", fg="red"), err=True)
        sys.exit(1)

    except Exception as e:
        logger.exception(f"Sync failed: {e}")
        click.echo(click.style(f"\nSync failed: {e}", fg="red"), err=True)
        sys.exit(1)

    show_run_summary(summary, verbose=verbose)

    if dry_run:
        click.echo(click.style("\nDry run complete. Nothing was written.", fg="yellow"))
    elif summary.added_count == 0:
        click.echo(click.style("\nNo new meetings to import.", fg="green"))
    else:
        click.echo(click.style("\nSync completed.", fg="green"))


# =============================================================================
# Status and Log Commands
# =============================================================================


@cli.command("status")
@click.pass_context
def status_command(ctx: click.Context) -> None:
    """
    Show sync status.

    Displays counts of processed, unmatched and failed meetings and the time
    of the last sync, derived from the sync log.

    Example:

        meeting-sync status
    """
    logger = get_logger(__name__)
    config = ctx.obj.get("config", {})

    try:
        service = open_service(ctx)
        stats = service.compute_stats()
        mapping_count = service.mappings.count()
    except Exception as e:
        logger.exception(f"Failed to get status: {e}")
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo("=== Meeting Sync Status ===\n")
    click.echo(f"Configuration directory: {ctx.obj['config_dir']}")
    click.echo(f"Database: {ctx.obj['db_path']}")
    api_key_status = (
        "Configured"
        if resolve_api_key(config)
        else click.style("Not configured", fg="red")
    )
    click.echo(f"Fathom API key: {api_key_status}")
    click.echo(f"Mappings: {mapping_count}")
    click.echo()
    show_stats(stats)

    if stats.unmatched:
        click.echo(
            click.style(
                "\nTip: run 'meeting-sync log --status unmatched' to see which "
                "meetings need a mapping.",
                fg="cyan",
            )
        )


@cli.command("log")
@click.option(
    "--limit",
    "-n",
    type=click.IntRange(min=1),
    default=None,
    help=f"Number of entries to show (default: config or {DEFAULT_LOG_LIMIT}).",
)
@click.option(
    "--status",
    "status_filter",
    type=click.Choice(STATUS_CHOICES, case_sensitive=False),
    default=None,
    help="Only show entries with this status.",
)
@click.pass_context
def log_command(
    ctx: click.Context, limit: int | None, status_filter: str | None
) -> None:
    """
    Show recent sync log entries, most recent first.

    Examples:

        meeting-sync log
        meeting-sync log --limit 100 --status failed
    """
    logger = get_logger(__name__)
    config = ctx.obj.get("config", {})
    effective_limit = limit or config.get("log_limit", DEFAULT_LOG_LIMIT)
    status = SyncStatus(status_filter.lower()) if status_filter else None

    try:
        service = open_service(ctx)
        entries = service.list_recent_log(limit=effective_limit, status=status)
    except Exception as e:
        logger.exception(f"Failed to read sync log: {e}")
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    show_log_entries(entries, verbose=ctx.obj["verbose"])


@cli.command("clear-failed")
@click.option(
    "--external-id",
    "-e",
    "external_ids",
    multiple=True,
    help="Only clear this meeting (repeatable). Default: all failed meetings.",
)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
@click.pass_context
def clear_failed_command(
    ctx: click.Context, external_ids: tuple[str, ...], yes: bool
) -> None:
    """
    Remove failed entries so the next sync retries them.

    Failed meetings are not retried by a normal sync because they already
    have a log entry. Clearing the entry lets the next sync covering that
    meeting import it again. Processed and unmatched entries are never
    touched.

    Examples:

        meeting-sync clear-failed
        meeting-sync clear-failed --external-id 123456 --yes
    """
    logger = get_logger(__name__)

    if not yes:
        target = (
            f"{len(external_ids)} meeting(s)" if external_ids else "all failed meetings"
        )
        click.confirm(
            f"This will clear failed sync entries for {target} so they are retried.\n"
            "Continue?",
            abort=True,
        )

    try:
        service = open_service(ctx)
        deleted = service.clear_failed(list(external_ids) if external_ids else None)
    except Exception as e:
        logger.exception(f"Failed to clear failed entries: {e}")
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style(f"Cleared {deleted} failed entries.", fg="green"))
    if deleted:
        click.echo("Run 'meeting-sync sync' over the affected window to retry them.")


# =============================================================================
# Mappings Commands
# =============================================================================


@cli.group("mappings")
@click.pass_context
def mappings_group(ctx: click.Context) -> None:
    """
    Manage email/domain to client mappings.

    A mapping is either a bare domain ("acmecorp.com"), matching every
    attendee at that domain, or a full email address, which takes priority
    over the domain for that attendee.

    Examples:

        meeting-sync mappings add acmecorp.com "Acme Corp"
        meeting-sync mappings list
        meeting-sync mappings remove 3
    """
    pass


@mappings_group.command("list")
@click.pass_context
def mappings_list_command(ctx: click.Context) -> None:
    """List all mappings in rule order."""
    logger = get_logger(__name__)
    try:
        service = open_service(ctx)
        rules = service.list_mappings()
    except Exception as e:
        logger.exception(f"Failed to list mappings: {e}")
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    show_mappings(rules)


@mappings_group.command("add")
@click.argument("pattern")
@click.argument("client_name")
@click.option(
    "--created-by",
    default=None,
    help="Operator recorded on the mapping (default: config or $USER).",
)
@click.pass_context
def mappings_add_command(
    ctx: click.Context, pattern: str, client_name: str, created_by: str | None
) -> None:
    """
    Add a mapping from PATTERN (domain or email) to CLIENT_NAME.

    Examples:

        meeting-sync mappings add acmecorp.com "Acme Corp"
        meeting-sync mappings add bob@gmail.com "Acme Corp"
    """
    logger = get_logger(__name__)
    config = ctx.obj.get("config", {})
    operator = created_by or config.get("created_by") or os.environ.get("USER")

    try:
        service = open_service(ctx)
        rule = service.add_mapping(pattern, client_name, created_by=operator)
    except (ValidationError, ConflictError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Failed to add mapping: {e}")
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(
        click.style(
            f"Added mapping [{rule.id}] {rule.pattern} -> {rule.client_name}",
            fg="green",
        )
    )


@mappings_group.command("remove")
@click.argument("mapping_id", type=int)
@click.pass_context
def mappings_remove_command(ctx: click.Context, mapping_id: int) -> None:
    """
    Remove the mapping with MAPPING_ID.

    Example:

        meeting-sync mappings remove 3
    """
    logger = get_logger(__name__)
    try:
        service = open_service(ctx)
        service.remove_mapping(mapping_id)
    except NotFoundError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Failed to remove mapping: {e}")
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style(f"Removed mapping {mapping_id}.", fg="green"))


# =============================================================================
# Ingest Command
# =============================================================================


@cli.command("ingest")
@click.argument("payload_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--secret",
    default=None,
    help=f"Value of the {WEBHOOK_SECRET_HEADER} header sent with the payload.",
)
@click.pass_context
def ingest_command(ctx: click.Context, payload_file: str, secret: str | None) -> None:
    """
    Process a webhook payload saved to PAYLOAD_FILE.

    The payload is checked against the configured webhook secret (if any)
    and its meetings go through the same matching and dedup as a sync.

    Example:

        meeting-sync ingest payload.json --secret "$FATHOM_WEBHOOK_SECRET"
    """
    logger = get_logger(__name__)
    config = ctx.obj.get("config", {})
    secret_env = config.get("webhook_secret_env") or DEFAULT_WEBHOOK_SECRET_ENV
    expected_secret = os.environ.get(secret_env)

    headers = {WEBHOOK_SECRET_HEADER: secret} if secret is not None else {}

    try:
        verify_webhook_secret(headers, expected_secret)
        body = Path(payload_file).read_bytes()
        meetings = parse_webhook_payload(body)
    except (ValidationError, OSError) as e:
        logger.error(f"Rejected webhook payload: {e}")
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    try:
        service = open_service(ctx)
        setup_resolution_logger(get_resolution_log_path(ctx.obj["log_dir"]))
        summary = service.ingest_meetings(meetings)
    except MeetingSyncError as e:
        logger.error(f"Ingest failed: {e}")
        click.echo(click.style(f"Ingest failed: {e}", fg="red"), err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Ingest failed: {e}")
        click.echo(click.style(f"Ingest failed: {e}", fg="red"), err=True)
        sys.exit(1)

    show_run_summary(summary, verbose=ctx.obj["verbose"])


# =============================================================================
# Init-Config and Health Commands
# =============================================================================


@cli.command("init-config")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite existing configuration file if it exists.",
)
@click.pass_context
def init_config_command(ctx: click.Context, force: bool) -> None:
    """
    Generate a default configuration file.

    Creates a configuration file with all available options documented
    and commented out.

    Examples:

        meeting-sync init-config
        meeting-sync init-config --force
    """
    logger = get_logger(__name__)
    config_file = ctx.obj["config_file"]

    click.echo(f"Creating configuration file: {config_file}")

    success, error = save_config_file(config_file, overwrite=force)

    if success:
        click.echo(click.style("Configuration file created successfully!", fg="green"))
        click.echo(f"\nLocation: {config_file}")
        click.echo("\nNext steps:")
        click.echo(f"1. Export your Fathom API key as {DEFAULT_API_KEY_ENV}")
        click.echo("2. Add client mappings with 'meeting-sync mappings add'")
        click.echo("3. Run 'meeting-sync sync'")
        logger.info(f"Created configuration file: {config_file}")
    else:
        click.echo(click.style(f"Error: {error}", fg="red"), err=True)
        logger.error(f"Failed to create configuration file: {error}")
        sys.exit(1)


@cli.command("health")
@click.option(
    "--check-api",
    is_flag=True,
    help="Also verify that the Fathom API accepts the configured key.",
)
@click.pass_context
def health_command(ctx: click.Context, check_api: bool) -> None:
    """
    Check application health status.

    Useful for container health checks and monitoring. Exits 1 when
    --check-api is given and the API cannot be reached.

    Examples:

        meeting-sync health
        meeting-sync health --check-api
    """
    if check_api:
        try:
            build_fathom_api(ctx.obj.get("config", {})).check_connection()
        except FetchError as e:
            get_logger(__name__).error(f"Health check failed: {e}")
            click.echo(f"unhealthy: {e}")
            sys.exit(1)
    click.echo("healthy")


# =============================================================================
# Daemon Commands
# =============================================================================


@cli.group("daemon")
@click.pass_context
def daemon_group(ctx: click.Context) -> None:
    """
    Manage the periodic sync daemon.

    Examples:

        # Sync every 30 minutes, looking back a day each time
        meeting-sync daemon start --interval 30m --lookback 24h

        meeting-sync daemon status
        meeting-sync daemon stop
    """
    pass


@daemon_group.command("start")
@click.option(
    "--interval",
    "-i",
    default=None,
    help="Sync interval (e.g., '30s', '5m', '1h', '1d'). Defaults to config or '1h'.",
)
@click.option(
    "--lookback",
    "-l",
    default=None,
    help="Window each sync covers (e.g., '24h'). Defaults to config or '24h'.",
)
@click.option(
    "--no-initial-sync",
    is_flag=True,
    help="Skip the initial sync on daemon startup.",
)
@click.pass_context
def daemon_start_command(
    ctx: click.Context,
    interval: str | None,
    lookback: str | None,
    no_initial_sync: bool,
) -> None:
    """
    Run syncs on an interval until stopped.

    Runs in the foreground. SIGTERM or SIGINT stops the daemon and cancels
    a sync in progress before its next meeting; meetings already imported
    stay imported.

    Examples:

        meeting-sync -v daemon start
        meeting-sync daemon start --interval 30m --no-initial-sync
    """
    logger = get_logger(__name__)
    config = ctx.obj.get("config", {})
    verbose = ctx.obj["verbose"]

    from meeting_sync.daemon import (
        DaemonAlreadyRunningError,
        DaemonError,
        DaemonScheduler,
        parse_interval,
    )

    effective_interval = interval or config.get(
        "daemon_interval", DEFAULT_DAEMON_INTERVAL
    )
    effective_lookback = lookback or config.get("lookback", DEFAULT_LOOKBACK)
    try:
        interval_seconds = parse_interval(effective_interval)
        lookback_window = parse_lookback(effective_lookback)
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    try:
        service = open_service(ctx, with_source=True)
    except MeetingSyncError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(f"Starting daemon with {effective_interval} sync interval...")
    click.echo("Running in foreground mode (Ctrl+C to stop)")

    if verbose:
        click.echo(f"  Config directory: {ctx.obj['config_dir']}")
        click.echo(f"  Interval: {interval_seconds} seconds")
        click.echo(f"  Lookback: {effective_lookback}")
        click.echo(f"  Initial sync: {'No' if no_initial_sync else 'Yes'}")

    try:
        scheduler = DaemonScheduler(
            interval=interval_seconds,
            pid_file=get_pid_file(config),
            run_immediately=not no_initial_sync,
        )

        def sync_callback(shutdown: threading.Event) -> bool:
            """Run one sync over the lookback window."""
            setup_resolution_logger(get_resolution_log_path(ctx.obj["log_dir"]))
            try:
                summary = service.run_sync(
                    utc_now() - lookback_window, cancel_event=shutdown
                )
            except (FetchError, PersistError) as e:
                logger.error(f"Sync failed: {e}")
                return False

            logger.info(
                f"Sync completed: {summary.processed_count} processed, "
                f"{summary.unmatched_count} unmatched, "
                f"{summary.failed_count} failed"
            )
            return summary.failed_count == 0

        scheduler.set_sync_callback(sync_callback)

        logger.info(f"Daemon starting (interval={interval_seconds}s)")
        scheduler.run()

        click.echo(click.style("\nDaemon stopped gracefully.", fg="green"))

    except DaemonAlreadyRunningError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        click.echo("Use 'meeting-sync daemon stop' to stop the running daemon.")
        sys.exit(1)

    except DaemonError as e:
        logger.error(f"Daemon error: {e}")
        click.echo(click.style(f"Daemon error: {e}", fg="red"), err=True)
        sys.exit(1)

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)


@daemon_group.command("stop")
@click.pass_context
def daemon_stop_command(ctx: click.Context) -> None:
    """
    Stop the running daemon.

    Sends SIGTERM; a sync in progress stops before its next meeting.
    """
    logger = get_logger(__name__)
    config = ctx.obj.get("config", {})

    from meeting_sync.daemon import DEFAULT_PID_FILE, DaemonScheduler

    pid_file = get_pid_file(config) or DEFAULT_PID_FILE
    pid = DaemonScheduler.get_running_pid(pid_file)

    if pid is None:
        click.echo("No daemon is currently running.")
        return

    click.echo(f"Stopping daemon (PID: {pid})...")

    if DaemonScheduler.stop_running_daemon(pid_file):
        click.echo(click.style("Stop signal sent successfully.", fg="green"))
        logger.info(f"Sent stop signal to daemon (PID: {pid})")
    else:
        click.echo(
            click.style("Failed to send stop signal to daemon.", fg="red"), err=True
        )
        sys.exit(1)


@daemon_group.command("status")
@click.pass_context
def daemon_status_command(ctx: click.Context) -> None:
    """Show whether the daemon is running."""
    config = ctx.obj.get("config", {})
    verbose = ctx.obj.get("verbose", False)

    from meeting_sync.daemon import DEFAULT_PID_FILE, DaemonScheduler, PIDFileManager

    pid_file = get_pid_file(config) or DEFAULT_PID_FILE

    click.echo("=== Daemon Status ===\n")

    pid = DaemonScheduler.get_running_pid(pid_file)

    if pid is not None:
        click.echo(f"Status: {click.style('Running', fg='green')}")
        click.echo(f"Process ID: {pid}")
    else:
        click.echo(f"Status: {click.style('Stopped', fg='yellow')}")
        stale_pid = PIDFileManager(pid_file).read()
        if stale_pid is not None:
            click.echo(f"Stale PID file exists (PID: {stale_pid})")
            click.echo("It will be cleaned up on next daemon start.")
        else:
            click.echo("No daemon is currently running.")

    if verbose:
        click.echo(f"\nPID file: {pid_file}")
