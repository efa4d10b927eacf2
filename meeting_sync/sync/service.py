"""
Service facade exposing the reconciliation operations.

The CLI, the daemon and the webhook ingest path all go through
MeetingSyncService so they share one contract for syncing, editing
mappings and reading the log.
"""

import logging
import threading
from collections.abc import Iterable
from datetime import datetime
from typing import Optional

from meeting_sync.storage.db import SyncDatabase
from meeting_sync.storage.mappings import MappingStore
from meeting_sync.storage.records import MeetingRecordStore
from meeting_sync.storage.sync_log import DEFAULT_LOG_LIMIT, SyncLog
from meeting_sync.sync.engine import SyncEngine
from meeting_sync.sync.models import (
    CandidateMeeting,
    MappingRule,
    SyncLogEntry,
    SyncRunSummary,
    SyncStatus,
)
from meeting_sync.sync.protocols import MeetingSource
from meeting_sync.sync.resolver import DEFAULT_MATCH_POLICY, MatchPolicy
from meeting_sync.sync.stats import SyncLogStats, compute_stats

logger = logging.getLogger(__name__)


class MeetingSyncService:
    """
    Entry point for every meeting sync operation.

    Owns the stores for one database; the meeting source is optional so
    commands that only touch mappings or the log work without API
    credentials.

    Usage:
        database = SyncDatabase(db_path)
        database.initialize()
        service = MeetingSyncService(database, source=FathomAPI(api_key))
        service.add_mapping("acmecorp.com", "Acme Corp", created_by="ops")
        summary = service.run_sync(created_after)
        print(service.compute_stats().summary())
    """

    def __init__(
        self,
        database: SyncDatabase,
        source: Optional[MeetingSource] = None,
        match_policy: MatchPolicy = DEFAULT_MATCH_POLICY,
    ):
        """
        Initialize the service.

        Args:
            database: Initialized SyncDatabase
            source: Meeting source used by run_sync()
            match_policy: Resolver policy for sync runs
        """
        self.database = database
        self.mappings = MappingStore(database)
        self.sync_log = SyncLog(database)
        self.records = MeetingRecordStore(database)
        self.engine = SyncEngine(
            source=source,
            mappings=self.mappings,
            sync_log=self.sync_log,
            record_writer=self.records,
            match_policy=match_policy,
        )

    def run_sync(
        self,
        created_after: datetime,
        cancel_event: Optional[threading.Event] = None,
        dry_run: bool = False,
    ) -> SyncRunSummary:
        """
        Run a sync pass. See SyncEngine.run_sync().

        Raises:
            FetchError: If candidates cannot be fetched
            PersistError: If a sync log entry cannot be written
        """
        return self.engine.run_sync(
            created_after, cancel_event=cancel_event, dry_run=dry_run
        )

    def ingest_meetings(
        self,
        meetings: Iterable[CandidateMeeting],
        cancel_event: Optional[threading.Event] = None,
    ) -> SyncRunSummary:
        """Reconcile meetings delivered by push (webhook) instead of fetch."""
        return self.engine.process_candidates(meetings, cancel_event=cancel_event)

    def add_mapping(
        self, pattern: str, client_name: str, created_by: Optional[str] = None
    ) -> MappingRule:
        """
        Add a mapping rule.

        Raises:
            ValidationError: If pattern or client_name is blank or malformed
            ConflictError: If the normalized pattern already exists
        """
        return self.mappings.add_mapping(pattern, client_name, created_by=created_by)

    def remove_mapping(self, mapping_id: int) -> None:
        """
        Remove a mapping rule.

        Raises:
            NotFoundError: If no rule has this id
        """
        self.mappings.remove_mapping(mapping_id)

    def list_mappings(self) -> list[MappingRule]:
        return self.mappings.list_mappings()

    def list_recent_log(
        self,
        limit: Optional[int] = DEFAULT_LOG_LIMIT,
        status: Optional[SyncStatus] = None,
    ) -> list[SyncLogEntry]:
        """Get sync log entries, most recent first."""
        return self.sync_log.list_recent(limit=limit, status=status)

    def compute_stats(self) -> SyncLogStats:
        """Derive stats from the current sync log."""
        return compute_stats(self.sync_log.list_all())

    def clear_failed(self, external_ids: Optional[Iterable[str]] = None) -> int:
        """
        Delete failed log entries so the next sync retries those meetings.

        Args:
            external_ids: Restrict to these meetings; None clears all failures

        Returns:
            Number of entries deleted
        """
        return self.sync_log.clear_failed(external_ids)
