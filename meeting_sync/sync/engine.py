"""
Sync engine for meeting import reconciliation.

Runs one sync pass: fetch candidate meetings created after a cutoff, skip
those already in the sync log, resolve the rest to a client, write matched
meetings downstream, and append exactly one log entry per new meeting.

Per-meeting problems never abort a run; they are recorded as failed log
entries. A run aborts only when candidates cannot be fetched, before anything
is written, or when the sync log itself rejects a write (PersistError).
"""

import logging
import threading
from collections.abc import Iterable
from datetime import datetime
from typing import Optional

from meeting_sync.errors import ConflictError, PersistError
from meeting_sync.sync.dedup import DedupIndex
from meeting_sync.sync.models import CandidateMeeting, SyncLogEntry, SyncRunSummary
from meeting_sync.sync.protocols import (
    MappingRepository,
    MeetingRecordWriter,
    MeetingSource,
    SyncLogRepository,
)
from meeting_sync.sync.resolver import (
    DEFAULT_MATCH_POLICY,
    MappingResolver,
    MatchPolicy,
)

logger = logging.getLogger(__name__)


class SyncEngine:
    """
    Orchestrates a sync run over injected collaborators.

    Usage:
        engine = SyncEngine(
            source=fathom_api,
            mappings=mapping_store,
            sync_log=sync_log,
            record_writer=record_store,
        )
        summary = engine.run_sync(created_after)
        print(summary.summary())
    """

    def __init__(
        self,
        source: Optional[MeetingSource],
        mappings: MappingRepository,
        sync_log: SyncLogRepository,
        record_writer: MeetingRecordWriter,
        match_policy: MatchPolicy = DEFAULT_MATCH_POLICY,
    ):
        """
        Initialize the sync engine.

        Args:
            source: Where candidate meetings come from. May be None when the
                engine only processes pushed (webhook) meetings.
            mappings: Mapping rule repository consulted by the resolver
            sync_log: Append-only sync log, also the source of the dedup index
            record_writer: Downstream writer for matched meetings
            match_policy: Resolver policy (default: attendee_order)
        """
        self.source = source
        self.sync_log = sync_log
        self.record_writer = record_writer
        self.resolver = MappingResolver(mappings, match_policy)

    def run_sync(
        self,
        created_after: datetime,
        cancel_event: Optional[threading.Event] = None,
        dry_run: bool = False,
    ) -> SyncRunSummary:
        """
        Fetch and reconcile meetings created after a cutoff.

        Re-running with an overlapping window is safe: meetings that already
        have a log entry are skipped.

        Args:
            created_after: Only meetings created after this time are fetched
            cancel_event: When set, processing stops before the next meeting.
                Entries already appended are kept.
            dry_run: If True, classify meetings without writing anything

        Returns:
            SyncRunSummary describing the run

        Raises:
            FetchError: If candidates cannot be fetched; nothing is written
            PersistError: If a sync log entry cannot be written
        """
        if self.source is None:
            raise ValueError("SyncEngine has no meeting source configured")

        logger.info(
            f"Starting sync (created_after={created_after.isoformat()}, "
            f"policy={self.resolver.policy.value}, dry_run={dry_run})"
        )

        candidates = self.source.fetch_candidate_meetings(created_after)
        logger.info(f"Fetched {len(candidates)} candidate meetings")

        return self.process_candidates(
            candidates, cancel_event=cancel_event, dry_run=dry_run
        )

    def process_candidates(
        self,
        candidates: Iterable[CandidateMeeting],
        cancel_event: Optional[threading.Event] = None,
        dry_run: bool = False,
    ) -> SyncRunSummary:
        """
        Reconcile already-obtained candidates, in order.

        Used by run_sync() after fetching, and directly for meetings pushed
        through the webhook.

        Args:
            candidates: Meetings in fetch order
            cancel_event: Optional cancellation token checked before each meeting
            dry_run: If True, classify meetings without writing anything

        Returns:
            SyncRunSummary describing the run

        Raises:
            PersistError: If a sync log entry cannot be written; meetings
                logged before it stay logged
        """
        candidates = list(candidates)
        summary = SyncRunSummary(fetched_count=len(candidates))
        index = DedupIndex.from_sync_log(self.sync_log)

        for position, meeting in enumerate(candidates):
            if cancel_event is not None and cancel_event.is_set():
                summary.cancelled = True
                logger.warning(
                    f"Sync cancelled with {len(candidates) - position} "
                    "meetings left unprocessed"
                )
                break

            if index.contains(meeting.external_id):
                summary.skipped_count += 1
                logger.debug(f"Skipping already-synced meeting {meeting.external_id}")
                continue

            entry = self._reconcile(meeting, dry_run=dry_run)
            index.add(meeting.external_id)

            if dry_run:
                summary.record(entry)
                continue

            try:
                stored = self.sync_log.append(entry)
            except ConflictError:
                # Another run logged this meeting between our index load and now
                summary.skipped_count += 1
                logger.info(
                    f"Meeting {meeting.external_id} was logged by a concurrent run"
                )
                continue
            except PersistError as e:
                # Log write failures are run-level
                logger.error(
                    f"Aborting sync: could not log meeting {meeting.external_id} "
                    f"({summary.processed_count} processed so far): {e}"
                )
                raise

            summary.record(stored)

        logger.info(
            f"Sync complete: {summary.processed_count} processed, "
            f"{summary.unmatched_count} unmatched, {summary.failed_count} failed, "
            f"{summary.skipped_count} skipped"
        )
        return summary

    def _reconcile(self, meeting: CandidateMeeting, dry_run: bool) -> SyncLogEntry:
        """
        Decide the outcome for one new meeting.

        Args:
            meeting: Meeting not yet in the sync log
            dry_run: If True, skip the downstream write

        Returns:
            The (not yet appended) log entry for the meeting
        """
        try:
            client_name = self.resolver.resolve(meeting.attendee_identities)
            if client_name is None:
                logger.debug(f"No client for meeting {meeting.external_id}")
                return SyncLogEntry.unmatched(meeting)

            if not dry_run:
                self.record_writer.persist_meeting_record(meeting, client_name)

            logger.debug(f"Imported meeting {meeting.external_id} for {client_name}")
            return SyncLogEntry.processed(meeting, client_name)

        except PersistError as e:
            logger.warning(f"Failed to save meeting {meeting.external_id}: {e}")
            return SyncLogEntry.failed(meeting, str(e))

        except Exception as e:
            logger.exception(
                f"Unexpected error processing meeting {meeting.external_id}"
            )
            return SyncLogEntry.failed(meeting, str(e) or type(e).__name__)
