"""Tests for sync log statistics."""

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from meeting_sync.sync.models import SyncLogEntry, SyncStatus
from meeting_sync.sync.stats import SyncLogStats, compute_stats

from .conftest import make_meeting

BASE_TIME = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def entry_for(index, status):
    meeting = make_meeting(f"m{index}")
    if status is SyncStatus.PROCESSED:
        entry = SyncLogEntry.processed(meeting, "Acme Corp")
    elif status is SyncStatus.UNMATCHED:
        entry = SyncLogEntry.unmatched(meeting)
    else:
        entry = SyncLogEntry.failed(meeting, "boom")
    return dataclasses.replace(entry, synced_at=BASE_TIME + timedelta(seconds=index))


class TestComputeStats:
    """Tests for compute_stats."""

    def test_empty_log(self):
        """Test that an empty log yields zeros and no last sync."""
        stats = compute_stats([])

        assert stats == SyncLogStats()
        assert stats.total == 0
        assert stats.last_sync_at is None

    def test_single_entry(self):
        """Test a log with one entry."""
        entry = entry_for(0, SyncStatus.UNMATCHED)

        stats = compute_stats([entry])

        assert stats.total == 1
        assert stats.unmatched == 1
        assert stats.processed == 0
        assert stats.failed == 0
        assert stats.last_sync_at == entry.synced_at

    def test_large_log(self):
        """Test counts over more than a thousand entries."""
        statuses = [SyncStatus.PROCESSED, SyncStatus.UNMATCHED, SyncStatus.FAILED]
        entries = [entry_for(i, statuses[i % 3]) for i in range(1500)]

        stats = compute_stats(entries)

        assert stats.total == 1500
        assert stats.processed == 500
        assert stats.unmatched == 500
        assert stats.failed == 500
        assert stats.processed + stats.unmatched + stats.failed == stats.total
        assert stats.last_sync_at == BASE_TIME + timedelta(seconds=1499)

    def test_order_independent(self):
        """Test that last_sync_at is the maximum regardless of order."""
        entries = [entry_for(i, SyncStatus.PROCESSED) for i in range(5)]

        assert compute_stats(reversed(entries)) == compute_stats(entries)

    def test_accepts_generator(self):
        """Test that any iterable is accepted."""
        stats = compute_stats(entry_for(i, SyncStatus.FAILED) for i in range(3))
        assert stats.failed == 3

    def test_from_sync_log(self, sync_log):
        """Test folding a stored log."""
        for i, status in enumerate(
            [SyncStatus.PROCESSED, SyncStatus.PROCESSED, SyncStatus.FAILED]
        ):
            sync_log.append(entry_for(i, status))

        stats = compute_stats(sync_log.list_all())

        assert (stats.total, stats.processed, stats.failed) == (3, 2, 1)
        assert stats.last_sync_at == BASE_TIME + timedelta(seconds=2)

    def test_unknown_status_rejected(self):
        """Test that an entry with an unknown status is not silently counted."""
        bogus = object.__new__(SyncLogEntry)
        object.__setattr__(bogus, "status", "pending")
        object.__setattr__(bogus, "synced_at", BASE_TIME)

        with pytest.raises(ValueError, match="Unhandled sync status"):
            compute_stats([bogus])


class TestSyncLogStatsSummary:
    """Tests for SyncLogStats.summary."""

    def test_summary_never_synced(self):
        """Test the summary of an empty log."""
        text = SyncLogStats().summary()

        assert "Total meetings: 0" in text
        assert "Last sync: never" in text

    def test_summary_with_counts(self):
        """Test the summary with values."""
        stats = SyncLogStats(
            total=3, processed=1, unmatched=1, failed=1, last_sync_at=BASE_TIME
        )

        text = stats.summary()

        assert "Processed: 1" in text
        assert "Failed: 1" in text
        assert BASE_TIME.isoformat() in text
