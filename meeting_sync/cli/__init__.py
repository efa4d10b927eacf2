"""CLI package for meeting_sync."""

from meeting_sync.cli.formatters import (
    format_log_entry,
    show_log_entries,
    show_mappings,
    show_run_summary,
    show_stats,
    status_badge,
)
from meeting_sync.cli.main import (
    DEFAULT_LOOKBACK,
    cli,
    get_config_dir,
    resolve_api_key,
    resolve_created_after,
)
from meeting_sync.utils import DEFAULT_CONFIG_DIR

__all__ = [
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_LOOKBACK",
    "cli",
    "format_log_entry",
    "get_config_dir",
    "resolve_api_key",
    "resolve_created_after",
    "show_log_entries",
    "show_mappings",
    "show_run_summary",
    "show_stats",
    "status_badge",
]
