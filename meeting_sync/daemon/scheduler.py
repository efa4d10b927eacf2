"""
Foreground scheduler behind ``meeting-sync daemon start``.

Each cycle calls a sync callback with the scheduler's shutdown event. The
callback hands that event to ``MeetingSyncService.run_sync`` as its cancel
token, so SIGTERM/SIGINT (or ``daemon stop``) ends the current sync before
its next meeting and then ends the loop. A PID file in the config directory
lets ``daemon stop`` and ``daemon status`` find the running process.
"""

from __future__ import annotations

import logging
import os
import signal
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from meeting_sync.utils.paths import DEFAULT_CONFIG_DIR

logger = logging.getLogger(__name__)


DEFAULT_PID_DIR = DEFAULT_CONFIG_DIR
DEFAULT_PID_FILE = DEFAULT_PID_DIR / "daemon.pid"

# Signals that request a graceful stop, in installation order
SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)

# Receives the shutdown event, returns True when the cycle had no failures
SyncCallback = Callable[[threading.Event], bool]


class DaemonError(Exception):
    """Base exception for daemon-related errors."""

    pass


class PIDFileError(DaemonError):
    """Raised when the PID file cannot be read, written or removed."""

    pass


class DaemonAlreadyRunningError(DaemonError):
    """Raised when another live daemon owns the PID file."""

    pass


@dataclass
class DaemonStats:
    """Counters for the sync cycles run by one daemon process."""

    started_at: datetime = field(default_factory=datetime.now)
    sync_count: int = 0
    sync_success_count: int = 0
    sync_error_count: int = 0
    last_sync_at: datetime | None = None
    last_sync_success: bool = False
    last_error: str | None = None

    def record(self, success: bool, error: str | None = None) -> None:
        """Fold the outcome of one cycle into the counters."""
        if success:
            self.sync_success_count += 1
            self.last_error = None
        else:
            self.sync_error_count += 1
            if error is not None:
                self.last_error = error
        self.last_sync_success = success


class PIDFileManager:
    """Reads and writes the daemon PID file."""

    def __init__(self, pid_file: Path | None = None):
        self.pid_file = pid_file or DEFAULT_PID_FILE

    def create(self) -> None:
        """
        Claim the PID file for this process.

        A file left behind by a dead process is replaced.

        Raises:
            DaemonAlreadyRunningError: If the recorded process is alive
            PIDFileError: If the file cannot be written
        """
        recorded = self.read()
        if recorded is not None:
            if self.is_process_running(recorded):
                raise DaemonAlreadyRunningError(
                    f"Daemon already running with PID {recorded}"
                )
            logger.warning(f"Replacing stale PID file for dead process {recorded}")
            self.remove()

        pid = os.getpid()
        try:
            self.pid_file.parent.mkdir(parents=True, exist_ok=True)
            self.pid_file.write_text(str(pid))
        except OSError as e:
            raise PIDFileError(f"Failed to create PID file {self.pid_file}: {e}") from e
        logger.debug(f"Wrote PID {pid} to {self.pid_file}")

    def read(self) -> int | None:
        """
        Return the recorded PID, or None when there is no PID file.

        Raises:
            PIDFileError: If the file is unreadable or does not hold an integer
        """
        if not self.pid_file.exists():
            return None

        try:
            content = self.pid_file.read_text().strip()
        except OSError as e:
            raise PIDFileError(f"Failed to read PID file {self.pid_file}: {e}") from e
        try:
            return int(content)
        except ValueError as e:
            raise PIDFileError(f"Invalid PID in file {self.pid_file}: {content}") from e

    def remove(self) -> None:
        if not self.pid_file.exists():
            return
        try:
            self.pid_file.unlink()
        except OSError as e:
            raise PIDFileError(f"Failed to remove PID file {self.pid_file}: {e}") from e
        logger.debug(f"Removed PID file {self.pid_file}")

    @staticmethod
    def is_process_running(pid: int) -> bool:
        """Check a PID with signal 0."""
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            return False
        except PermissionError:
            # Alive, but owned by another user
            return True
        return True


class DaemonScheduler:
    """
    Runs the sync callback every ``interval`` seconds until shut down.

    Usage:
        scheduler = DaemonScheduler(interval=3600)

        def sync_cycle(shutdown: threading.Event) -> bool:
            summary = service.run_sync(cutoff, cancel_event=shutdown)
            return summary.failed_count == 0

        scheduler.set_sync_callback(sync_cycle)
        scheduler.run()  # blocks until SIGTERM/SIGINT or stop()
    """

    def __init__(
        self,
        interval: int = 3600,
        pid_file: Path | None = None,
        run_immediately: bool = True,
    ):
        """
        Args:
            interval: Seconds between sync cycles
            pid_file: PID file path (default ~/.meeting-sync/daemon.pid)
            run_immediately: Run a cycle on start instead of waiting first
        """
        self.interval = interval
        self.run_immediately = run_immediately
        self.shutdown_event = threading.Event()
        self.stats = DaemonStats()
        self._pid_manager = PIDFileManager(pid_file)
        self._sync_callback: SyncCallback | None = None
        self._running = False
        self._previous_handlers: dict[int, Any] = {}

    @property
    def pid_file(self) -> Path:
        return self._pid_manager.pid_file

    @property
    def shutdown_requested(self) -> bool:
        return self.shutdown_event.is_set()

    def set_sync_callback(self, callback: SyncCallback) -> None:
        self._sync_callback = callback

    def _setup_signal_handlers(self) -> None:
        for signum in SHUTDOWN_SIGNALS:
            self._previous_handlers[signum] = signal.signal(
                signum, self._signal_handler
            )

    def _restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            if handler is not None:
                signal.signal(signum, handler)
        self._previous_handlers.clear()

    def _signal_handler(self, signum: int, frame: object) -> None:
        logger.info(
            f"Received {signal.Signals(signum).name}, "
            "stopping after the current meeting"
        )
        self.shutdown_event.set()

    def _run_sync(self) -> bool:
        """
        Run one sync cycle and record it in ``stats``.

        Callback exceptions are logged and counted, never raised, so one bad
        cycle does not stop the daemon.

        Returns:
            True if the callback reported success
        """
        if self._sync_callback is None:
            logger.warning("No sync callback configured, skipping cycle")
            return False

        self.stats.sync_count += 1
        self.stats.last_sync_at = datetime.now()
        logger.info(f"Sync cycle #{self.stats.sync_count} starting")

        try:
            success = bool(self._sync_callback(self.shutdown_event))
        except Exception as e:
            logger.error(f"Sync cycle #{self.stats.sync_count} raised: {e}")
            self.stats.record(False, str(e))
            return False

        self.stats.record(success)
        if success:
            logger.info(f"Sync cycle #{self.stats.sync_count} finished")
        else:
            logger.warning(f"Sync cycle #{self.stats.sync_count} finished with errors")
        return success

    def _sleep_interruptible(self, seconds: int) -> bool:
        """
        Wait up to ``seconds``, returning False as soon as shutdown is requested.

        The deadline is wall-clock time checked once a second, so a host
        resumed from suspend syncs right away instead of waiting out a full
        interval.
        """
        deadline = time.time() + seconds
        while not self.shutdown_event.is_set():
            remaining = deadline - time.time()
            if remaining <= 0:
                return True
            self.shutdown_event.wait(min(1.0, remaining))
        return False

    def run(self) -> None:
        """
        Block running sync cycles until shutdown.

        Raises:
            DaemonAlreadyRunningError: If another daemon is running
            PIDFileError: If the PID file cannot be managed
        """
        self._pid_manager.create()
        logger.info(
            f"Daemon started (PID {os.getpid()}, interval {self.interval}s, "
            f"PID file {self.pid_file})"
        )

        self._setup_signal_handlers()
        self.shutdown_event.clear()
        self.stats = DaemonStats()
        self._running = True

        try:
            due = self.run_immediately
            while not self.shutdown_event.is_set():
                if due:
                    self._run_sync()
                logger.debug(f"Next sync in {self.interval}s")
                due = self._sleep_interruptible(self.interval)
        finally:
            self._running = False
            self._restore_signal_handlers()
            self._pid_manager.remove()
            logger.info(
                f"Daemon stopped after {self.stats.sync_count} sync cycle(s)"
            )

    def stop(self) -> None:
        """Request shutdown; an in-flight sync stops before its next meeting."""
        logger.info("Stop requested")
        self.shutdown_event.set()

    def is_running(self) -> bool:
        return self._running

    @classmethod
    def get_running_pid(cls, pid_file: Path | None = None) -> int | None:
        """Return the PID of a live daemon, or None."""
        manager = PIDFileManager(pid_file)
        pid = manager.read()
        if pid is not None and manager.is_process_running(pid):
            return pid
        return None

    @classmethod
    def stop_running_daemon(cls, pid_file: Path | None = None) -> bool:
        """
        Send SIGTERM to the running daemon.

        Returns:
            True if the signal was delivered
        """
        pid = cls.get_running_pid(pid_file)
        if pid is None:
            logger.info("No running daemon found")
            return False

        try:
            os.kill(pid, signal.SIGTERM)
        except ProcessLookupError:
            logger.warning(f"Daemon process {pid} exited before it was signalled")
            return False
        except PermissionError:
            logger.error(f"Not permitted to signal daemon process {pid}")
            return False
        logger.info(f"Sent SIGTERM to daemon (PID {pid})")
        return True


__all__ = [
    "DaemonScheduler",
    "DaemonStats",
    "DaemonError",
    "PIDFileError",
    "DaemonAlreadyRunningError",
    "PIDFileManager",
    "SyncCallback",
    "SHUTDOWN_SIGNALS",
    "DEFAULT_PID_DIR",
    "DEFAULT_PID_FILE",
]
