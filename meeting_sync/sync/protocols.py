"""
Collaborator interfaces consumed by the sync engine.

The engine only depends on these narrow capabilities, so tests can hand it
in-memory fakes or MagicMock(spec=...) objects and production code can back
them with the Fathom client and the SQLite stores.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Optional, Protocol

from meeting_sync.sync.models import (
    CandidateMeeting,
    MappingRule,
    SyncLogEntry,
    SyncStatus,
)


class MeetingSource(Protocol):
    """Fetches candidate meetings from the recording service."""

    def fetch_candidate_meetings(
        self, created_after: datetime
    ) -> list[CandidateMeeting]:
        """
        Fetch meetings created after a cutoff.

        Raises:
            FetchError: If the source cannot be reached or rejects the request
        """
        ...


class MeetingRecordWriter(Protocol):
    """Writes a matched meeting into the notes/meetings subsystem."""

    def persist_meeting_record(
        self, meeting: CandidateMeeting, client_name: str
    ) -> None:
        """
        Raises:
            PersistError: If the record cannot be written
        """
        ...


class MappingRepository(Protocol):
    """Read/add/remove access to mapping rules."""

    def list_mappings(self) -> list[MappingRule]: ...

    def add_mapping(
        self, pattern: str, client_name: str, created_by: Optional[str] = None
    ) -> MappingRule: ...

    def remove_mapping(self, mapping_id: int) -> None: ...


class SyncLogRepository(Protocol):
    """Read/append access to the sync log."""

    def append(self, entry: SyncLogEntry) -> SyncLogEntry: ...

    def list_recent(
        self,
        limit: Optional[int] = ...,
        status: Optional[SyncStatus] = None,
    ) -> list[SyncLogEntry]: ...

    def external_ids(self) -> set[str]: ...

    def clear_failed(self, external_ids: Optional[Iterable[str]] = None) -> int: ...
