"""
Append-only sync log storage.

Every meeting the sync engine processes leaves exactly one entry here. The
UNIQUE(external_id) constraint enforces the one-entry-per-meeting invariant
even when two runs race on the same meeting.
"""

import dataclasses
import logging
import sqlite3
from collections.abc import Iterable
from typing import Any, Optional

from meeting_sync.errors import ConflictError, PersistError
from meeting_sync.storage.db import SyncDatabase
from meeting_sync.sync.models import (
    SyncLogEntry,
    SyncStatus,
    format_timestamp,
    parse_timestamp,
    utc_now,
)

logger = logging.getLogger(__name__)

# Default number of entries shown in log views
DEFAULT_LOG_LIMIT = 30

_ENTRY_COLUMNS = """
    id,
    external_id,
    title,
    url,
    occurred_at,
    status,
    matched_client_name,
    error_message,
    synced_at
"""


class SyncLog:
    """
    SQLite-backed sync log.

    Usage:
        sync_log = SyncLog(database)
        stored = sync_log.append(SyncLogEntry.unmatched(meeting))
        for entry in sync_log.list_recent(30):
            print(entry.status.value, entry.title)
    """

    def __init__(self, database: SyncDatabase):
        """
        Initialize the sync log.

        Args:
            database: Initialized SyncDatabase
        """
        self.database = database

    @staticmethod
    def _row_to_entry(row: Any) -> SyncLogEntry:
        return SyncLogEntry(
            id=row["id"],
            external_id=row["external_id"],
            title=row["title"] or "",
            url=row["url"],
            occurred_at=parse_timestamp(row["occurred_at"]),
            status=SyncStatus(row["status"]),
            matched_client_name=row["matched_client_name"],
            error_message=row["error_message"],
            synced_at=parse_timestamp(row["synced_at"]) or utc_now(),
        )

    def append(self, entry: SyncLogEntry) -> SyncLogEntry:
        """
        Append an entry to the log.

        Args:
            entry: Entry to persist (its id is ignored)

        Returns:
            The persisted entry with its assigned id

        Raises:
            ConflictError: If an entry for entry.external_id already exists
            PersistError: If the database rejects the write for any other reason
        """
        try:
            with self.database.connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO sync_log (
                        external_id,
                        title,
                        url,
                        occurred_at,
                        status,
                        matched_client_name,
                        error_message,
                        synced_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        entry.external_id,
                        entry.title,
                        entry.url,
                        format_timestamp(entry.occurred_at),
                        entry.status.value,
                        entry.matched_client_name,
                        entry.error_message,
                        format_timestamp(entry.synced_at),
                    ),
                )
                entry_id = cursor.lastrowid
        except sqlite3.IntegrityError as e:
            raise ConflictError(
                f"Sync log already has an entry for meeting {entry.external_id}"
            ) from e
        except sqlite3.Error as e:
            raise PersistError(
                f"Failed to log meeting {entry.external_id}: {e}"
            ) from e

        return dataclasses.replace(entry, id=entry_id)

    def list_recent(
        self,
        limit: Optional[int] = DEFAULT_LOG_LIMIT,
        status: Optional[SyncStatus] = None,
    ) -> list[SyncLogEntry]:
        """
        Get log entries, most recent first.

        Args:
            limit: Maximum entries to return; None returns the whole log
            status: Optional status filter

        Returns:
            List of SyncLogEntry ordered by synced_at descending
        """
        query = f"SELECT {_ENTRY_COLUMNS} FROM sync_log"  # nosec B608
        params: list[Any] = []
        if status is not None:
            query += " WHERE status = ?"
            params.append(status.value)
        query += " ORDER BY synced_at DESC, id DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(max(int(limit), 0))

        with self.database.connection() as conn:
            cursor = conn.execute(query, params)
            return [self._row_to_entry(row) for row in cursor.fetchall()]

    def list_all(self) -> list[SyncLogEntry]:
        """Get the whole log, most recent first."""
        return self.list_recent(limit=None)

    def get_by_external_id(self, external_id: str) -> Optional[SyncLogEntry]:
        """
        Get the entry for a meeting.

        Args:
            external_id: Meeting identifier from the source

        Returns:
            SyncLogEntry, or None if the meeting was never synced
        """
        with self.database.connection() as conn:
            cursor = conn.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM sync_log WHERE external_id = ?",  # nosec B608
                (external_id,),
            )
            row = cursor.fetchone()
            return self._row_to_entry(row) if row else None

    def external_ids(self) -> set[str]:
        """
        Get the identifiers of every meeting that has a log entry.

        Returns:
            Set of external ids
        """
        with self.database.connection() as conn:
            cursor = conn.execute("SELECT external_id FROM sync_log")
            return {row["external_id"] for row in cursor.fetchall()}

    def count(self) -> int:
        """Get the number of log entries."""
        with self.database.connection() as conn:
            result: int = conn.execute("SELECT COUNT(*) FROM sync_log").fetchone()[0]
            return result

    def clear_failed(self, external_ids: Optional[Iterable[str]] = None) -> int:
        """
        Delete failed entries so the next sync imports those meetings again.

        This is an operator action; the sync engine itself never deletes
        entries. Only entries with status 'failed' are touched.

        Args:
            external_ids: Restrict to these meetings; None clears every failed entry

        Returns:
            Number of entries deleted
        """
        with self.database.connection() as conn:
            if external_ids is None:
                cursor = conn.execute(
                    "DELETE FROM sync_log WHERE status = ?",
                    (SyncStatus.FAILED.value,),
                )
                deleted = cursor.rowcount
            else:
                deleted = 0
                for external_id in external_ids:
                    cursor = conn.execute(
                        "DELETE FROM sync_log WHERE status = ? AND external_id = ?",
                        (SyncStatus.FAILED.value, external_id),
                    )
                    deleted += cursor.rowcount

        logger.info(f"Cleared {deleted} failed sync log entries")
        return deleted
