"""
meeting_sync.daemon - periodic sync runs

Duration parsing shared by the CLI and config validation, plus the
scheduler that drives ``meeting-sync daemon start``.
"""

import re
from datetime import timedelta

# "30s", "5m", "1h", "1d"
_DURATION_RE = re.compile(r"^(\d+)\s*([smhd])$")

_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_interval(interval: str | int) -> int:
    """Parse a duration such as "30s", "5m", "1h", "1d" or 3600 into seconds.

    Plain integers and numeric strings are taken as seconds. Units are
    case-insensitive and surrounding whitespace is ignored.

    Raises:
        ValueError: For an unknown unit, a malformed string or a non str/int
            value (bool included)
    """
    if isinstance(interval, bool) or not isinstance(interval, (str, int)):
        raise ValueError(
            f"Invalid interval type: {type(interval).__name__}. Expected str or int."
        )
    if isinstance(interval, int):
        return interval

    text = interval.strip().lower()
    if text.isdecimal():
        return int(text)

    match = _DURATION_RE.match(text)
    if match is None:
        raise ValueError(
            f"Invalid interval format: '{interval}'. "
            "Use format like '30s', '5m', '1h', or '1d'."
        )
    return int(match.group(1)) * _UNIT_SECONDS[match.group(2)]


def parse_lookback(lookback: str | int) -> timedelta:
    """Parse a lookback window ("24h", "7d") into a timedelta."""
    return timedelta(seconds=parse_interval(lookback))


# Imports after parse_interval to avoid circular dependencies
from meeting_sync.daemon.scheduler import (  # noqa: E402
    DEFAULT_PID_DIR,
    DEFAULT_PID_FILE,
    DaemonAlreadyRunningError,
    DaemonError,
    DaemonScheduler,
    DaemonStats,
    PIDFileError,
    PIDFileManager,
    SyncCallback,
)

__all__ = [
    "parse_interval",
    "parse_lookback",
    "DaemonScheduler",
    "DaemonStats",
    "DaemonError",
    "PIDFileError",
    "DaemonAlreadyRunningError",
    "PIDFileManager",
    "SyncCallback",
    "DEFAULT_PID_DIR",
    "DEFAULT_PID_FILE",
]
