"""
Dedup index of already-imported meetings.

The index is derived from the sync log at the start of each run and grows as
the run appends entries, so a meeting listed twice in one fetch is only
processed once.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from meeting_sync.sync.protocols import SyncLogRepository


class DedupIndex:
    """
    Set of external meeting ids that already have a sync log entry.

    Usage:
        index = DedupIndex.from_sync_log(sync_log)
        if not index.contains(meeting.external_id):
            ...
            index.add(meeting.external_id)
    """

    def __init__(self, external_ids: Iterable[str] = ()):
        self._ids: set[str] = set(external_ids)

    @classmethod
    def from_sync_log(cls, sync_log: SyncLogRepository) -> DedupIndex:
        """Build the index from every external id currently in the log."""
        return cls(sync_log.external_ids())

    def contains(self, external_id: str) -> bool:
        """True if the meeting has already been logged."""
        return external_id in self._ids

    def add(self, external_id: str) -> None:
        """Mark a meeting as logged."""
        self._ids.add(external_id)

    def __contains__(self, external_id: object) -> bool:
        return external_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)
