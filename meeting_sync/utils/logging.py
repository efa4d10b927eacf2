"""
Logging setup for meeting_sync.

Two log streams are configured here:

- the package logger ("meeting_sync"): colored console output plus a daily
  file under the log directory that always captures DEBUG
- the resolution logger ("meeting_sync.resolution"): one file per sync
  session recording which attendee and rule decided each meeting, so an
  operator can see why a meeting ended up unmatched

Console verbosity follows MEETING_SYNC_DEBUG / MEETING_SYNC_LOG_LEVEL;
MEETING_SYNC_LOG_FILE overrides (or with "none" disables) the daily file.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from meeting_sync.utils.paths import DEFAULT_CONFIG_DIR

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"
VERBOSE_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
)
RESOLUTION_LOG_FORMAT = "%(asctime)s.%(msecs)03d - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ENV_LOG_LEVEL = "MEETING_SYNC_LOG_LEVEL"
ENV_DEBUG = "MEETING_SYNC_DEBUG"
ENV_LOG_FILE = "MEETING_SYNC_LOG_FILE"

ROOT_LOGGER_NAME = "meeting_sync"
RESOLUTION_LOGGER_NAME = "meeting_sync.resolution"

DEFAULT_LOG_DIR = DEFAULT_CONFIG_DIR / "logs"

# Glob patterns for the files cleanup_old_logs() rotates
LOG_FILE_PATTERNS = ("meeting_sync_*.log", "resolution_*.log")

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_TRUTHY = ("1", "true", "yes")
_FILE_LOGGING_OFF = ("none", "disabled", "")

# Set by setup_logging() so later helpers default to the same directory
_configured_log_dir: Optional[Path] = None


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name and message by severity."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        use_colors: bool = True,
    ):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and self._supports_color()

    def _supports_color(self) -> bool:
        isatty = getattr(sys.stderr, "isatty", None)
        if isatty is None or not isatty():
            return False
        # https://no-color.org/
        if os.environ.get("NO_COLOR"):
            return False
        return os.environ.get("TERM", "") != "dumb"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname) if self.use_colors else None
        if color is None:
            return super().format(record)

        # Color a copy; the file handler formats the same record
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        colored.msg = f"{color}{record.msg}{self.RESET}"
        return super().format(colored)


def get_log_level_from_env() -> int:
    """
    Console level from the environment.

    MEETING_SYNC_DEBUG=1 wins; otherwise MEETING_SYNC_LOG_LEVEL is used, and
    unknown names fall back to INFO.
    """
    if os.environ.get(ENV_DEBUG, "").lower() in _TRUTHY:
        return logging.DEBUG
    return _LEVELS.get(os.environ.get(ENV_LOG_LEVEL, "INFO").upper(), logging.INFO)


def get_log_file_path(log_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Where the daily log goes.

    Args:
        log_dir: Directory used when MEETING_SYNC_LOG_FILE is unset

    Returns:
        The log file path, or None when file logging is switched off
    """
    override = os.environ.get(ENV_LOG_FILE)
    if override is not None:
        return None if override.lower() in _FILE_LOGGING_OFF else Path(override)

    day = datetime.now().strftime("%Y%m%d")
    return (log_dir or DEFAULT_LOG_DIR) / f"meeting_sync_{day}.log"


def _console_handler(level: int, fmt: str, use_colors: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if use_colors:
        handler.setFormatter(ColoredFormatter(fmt, DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(fmt, DATE_FORMAT))
    return handler


def _close_handlers(logger: logging.Logger) -> None:
    """Detach and close every handler so reconfiguring does not leak files."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logging(
    level: Optional[int] = None,
    verbose: bool = False,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
    use_colors: bool = True,
) -> logging.Logger:
    """
    Configure the package logger. Safe to call more than once.

    Args:
        level: Console level; read from the environment when None
        verbose: Force DEBUG and include file/line in console output
        log_dir: Directory for the daily log (default ~/.meeting-sync/logs)
        enable_file_logging: Also write the daily log file
        use_colors: Color console output when the terminal supports it

    Returns:
        The "meeting_sync" logger
    """
    global _configured_log_dir
    _configured_log_dir = log_dir

    if verbose:
        level = logging.DEBUG
    elif level is None:
        level = get_log_level_from_env()

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    _close_handlers(logger)
    logger.propagate = False
    # The file handler wants DEBUG even when the console is quieter
    logger.setLevel(logging.DEBUG if enable_file_logging else level)
    console_format = VERBOSE_FORMAT if verbose else CONSOLE_FORMAT
    logger.addHandler(_console_handler(level, console_format, use_colors))

    file_path = get_log_file_path(log_dir) if enable_file_logging else None
    if file_path is not None:
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(file_path, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not create log file {file_path}: {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(VERBOSE_FORMAT, DATE_FORMAT))
            logger.addHandler(file_handler)
            logger.debug(f"Log file: {file_path}")

    return logger


def cleanup_old_logs(log_dir: Optional[Path] = None, keep_count: int = 10) -> int:
    """
    Delete all but the newest ``keep_count`` daily and resolution logs.

    Each kind is rotated separately. keep_count <= 0 disables cleanup.

    Returns:
        Number of files deleted
    """
    if keep_count <= 0:
        return 0

    logs_dir = log_dir or _configured_log_dir or DEFAULT_LOG_DIR
    if not logs_dir.exists():
        return 0

    deleted = 0
    for pattern in LOG_FILE_PATTERNS:
        newest_first = sorted(
            logs_dir.glob(pattern), key=lambda p: p.stat().st_mtime, reverse=True
        )
        for stale in newest_first[keep_count:]:
            try:
                stale.unlink()
            except OSError as e:
                get_logger(__name__).debug(f"Could not delete {stale}: {e}")
            else:
                deleted += 1
    return deleted


def get_logger(name: str) -> logging.Logger:
    """Logger under the "meeting_sync" hierarchy for ``name``."""
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def get_resolution_log_path(log_dir: Optional[Path] = None) -> Path:
    """Timestamped resolution log path for a new sync session."""
    logs_dir = log_dir or _configured_log_dir or DEFAULT_LOG_DIR
    return logs_dir / f"resolution_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"


def setup_resolution_logger(
    log_file: Optional[Path] = None,
    level: int = logging.DEBUG,
) -> logging.Logger:
    """
    Point the resolution logger at a fresh session file.

    If the file cannot be created the decisions go to stderr instead.

    Args:
        log_file: Explicit file (default: get_resolution_log_path())
        level: Level for the session (default DEBUG)

    Returns:
        The "meeting_sync.resolution" logger
    """
    logger = logging.getLogger(RESOLUTION_LOGGER_NAME)
    logger.setLevel(level)
    _close_handlers(logger)
    logger.propagate = False

    formatter = logging.Formatter(RESOLUTION_LOG_FORMAT, DATE_FORMAT)
    file_path = log_file or get_resolution_log_path()

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(file_path, encoding="utf-8")
    except OSError as e:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.warning(f"Could not create resolution log file {file_path}: {e}")
        return logger

    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.info(f"Resolution session started at {datetime.now().isoformat()}")
    return logger


def get_resolution_logger() -> logging.Logger:
    """
    The resolution logger.

    Before setup_resolution_logger() it has no handlers and its records
    reach the package logger.
    """
    return logging.getLogger(RESOLUTION_LOGGER_NAME)


__all__ = [
    "setup_logging",
    "get_logger",
    "cleanup_old_logs",
    "ColoredFormatter",
    "get_log_level_from_env",
    "get_log_file_path",
    "setup_resolution_logger",
    "get_resolution_logger",
    "get_resolution_log_path",
    "DEFAULT_LOG_DIR",
    "DEFAULT_FORMAT",
    "CONSOLE_FORMAT",
    "VERBOSE_FORMAT",
    "DATE_FORMAT",
    "RESOLUTION_LOG_FORMAT",
]
