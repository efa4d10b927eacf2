"""
Aggregate status derived from the sync log.

Stats are never stored; they are folded from a log snapshot whenever a view
asks for them.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from meeting_sync.sync.models import SyncLogEntry, SyncStatus


@dataclass(frozen=True)
class SyncLogStats:
    """
    Counts over the sync log.

    Attributes:
        total: Number of log entries
        processed: Entries with status processed
        unmatched: Entries with status unmatched
        failed: Entries with status failed
        last_sync_at: synced_at of the most recent entry, None for an empty log
    """

    total: int = 0
    processed: int = 0
    unmatched: int = 0
    failed: int = 0
    last_sync_at: Optional[datetime] = None

    def summary(self) -> str:
        """Human-readable multi-line summary."""
        last = self.last_sync_at.isoformat() if self.last_sync_at else "never"
        return "\n".join(
            [
                "Sync Status:",
                f"  Total meetings: {self.total}",
                f"  Processed: {self.processed}",
                f"  Unmatched: {self.unmatched}",
                f"  Failed: {self.failed}",
                f"  Last sync: {last}",
            ]
        )


def compute_stats(entries: Iterable[SyncLogEntry]) -> SyncLogStats:
    """
    Fold a sync log snapshot into stats.

    Args:
        entries: Log entries in any order

    Returns:
        SyncLogStats; all zeros and no last_sync_at for an empty log

    Raises:
        ValueError: If an entry carries a status this fold does not know
    """
    total = processed = unmatched = failed = 0
    last_sync_at: Optional[datetime] = None

    for entry in entries:
        total += 1
        if entry.status is SyncStatus.PROCESSED:
            processed += 1
        elif entry.status is SyncStatus.UNMATCHED:
            unmatched += 1
        elif entry.status is SyncStatus.FAILED:
            failed += 1
        else:
            raise ValueError(f"Unhandled sync status: {entry.status!r}")

        if last_sync_at is None or entry.synced_at > last_sync_at:
            last_sync_at = entry.synced_at

    return SyncLogStats(
        total=total,
        processed=processed,
        unmatched=unmatched,
        failed=failed,
        last_sync_at=last_sync_at,
    )
