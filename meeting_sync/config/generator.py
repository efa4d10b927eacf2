"""
Configuration file generator for meeting sync.

Generates the default config.yaml with every option documented.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def generate_default_config() -> str:
    """
    Generate default YAML configuration with all options documented.

    Returns:
        String containing YAML configuration with comments

    Example:
        config_yaml = generate_default_config()
        with open("config.yaml", "w") as f:
            f.write(config_yaml)
    """
    return """# Meeting Sync Configuration
# ==========================
#
# Default options for meeting-sync. CLI arguments always override these.
#
# To use this configuration:
#   1. Save as ~/.meeting-sync/config.yaml (or custom location)
#   2. Uncomment and modify options as needed
#   3. Run meeting-sync commands normally

# Logging Options
# ---------------

# Enable verbose output with detailed logging
# Default: false
# verbose: true

# Directory for log files
# Default: ~/.meeting-sync/logs
# log_dir: /path/to/logs

# Number of log files of each kind to keep (0 keeps everything)
# Default: 10
# log_retention_count: 10


# Storage
# -------

# SQLite database holding mappings, the sync log and imported meetings
# Relative paths are resolved against the config directory
# Default: ~/.meeting-sync/meeting_sync.db
# database_path: meeting_sync.db


# Fathom API
# ----------

# API key. Prefer the environment variable below over storing it here.
# fathom_api_key: your-key

# Environment variable holding the API key
# Default: FATHOM_API_KEY
# fathom_api_key_env: FATHOM_API_KEY

# API root URL
# Default: https://api.fathom.ai/external/v1
# fathom_base_url: https://api.fathom.ai/external/v1

# Request timeout in seconds
# Default: 30
# api_timeout: 30

# Meetings requested per page
# Default: 50
# api_page_size: 50

# Retry attempts for rate limits and server errors
# Default: 5
# api_max_retries: 5

# Backoff delays in seconds
# Default: 1.0 and 60.0
# api_initial_retry_delay: 1.0
# api_max_retry_delay: 60.0


# Sync Behavior
# -------------

# How far back a sync looks when no --created-after is given
# Format: 30m, 24h, 7d
# Default: 24h
# lookback: 24h

# How attendees are matched to mapping rules
# Options:
#   - attendee_order: first attendee (in invite order) that matches any rule
#   - most_specific: any full-email rule first, then any domain rule
# Default: attendee_order
# match_policy: attendee_order

# Number of entries shown by `meeting-sync log`
# Default: 30
# log_limit: 30

# Operator name recorded on new mappings
# Default: current user
# created_by: ops@example.com


# Webhook
# -------

# Environment variable holding the x-webhook-secret shared secret
# Default: FATHOM_WEBHOOK_SECRET
# webhook_secret_env: FATHOM_WEBHOOK_SECRET


# Daemon
# ------

# Interval between syncs in daemon mode
# Default: 1h
# daemon_interval: 1h

# PID file location
# Default: ~/.meeting-sync/daemon.pid
# daemon_pid_file: /path/to/daemon.pid
"""


def save_config_file(
    config_path: Path, overwrite: bool = False
) -> tuple[bool, str | None]:
    """
    Save default configuration file to specified path.

    Args:
        config_path: Path where the config file should be saved
        overwrite: If True, overwrite existing file. If False, fail if file exists.

    Returns:
        Tuple of (success, error_message); error_message is None on success
    """
    try:
        config_path = config_path.expanduser().resolve()

        if config_path.exists() and not overwrite:
            return (
                False,
                f"Configuration file already exists: {config_path}\n"
                "Use --force to overwrite.",
            )

        config_path.parent.mkdir(parents=True, mode=0o700, exist_ok=True)
        config_path.write_text(generate_default_config(), encoding="utf-8")

        # May hold an API key
        config_path.chmod(0o600)

        logger.info(f"Created configuration file: {config_path}")
        return (True, None)

    except OSError as e:
        error_msg = f"Failed to create configuration file: {e}"
        logger.error(error_msg)
        return (False, error_msg)
