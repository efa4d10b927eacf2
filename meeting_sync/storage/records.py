"""
Imported meeting record storage.

The local sink for matched meetings: each processed meeting becomes one row
in meeting_records, keyed by its external id, which downstream notes and
activity views read.
"""

import json
import logging
import sqlite3
from typing import Any, Optional

from meeting_sync.errors import PersistError
from meeting_sync.storage.db import SyncDatabase
from meeting_sync.sync.models import CandidateMeeting, format_timestamp, utc_now

logger = logging.getLogger(__name__)


class MeetingRecordStore:
    """
    SQLite-backed writer for matched meetings.

    Writes are upserts on external_id so that a meeting imported twice (for
    example by two racing runs) still yields a single record.

    Usage:
        records = MeetingRecordStore(database)
        records.persist_meeting_record(meeting, "Acme Corp")
        records.list_for_client("Acme Corp")
    """

    def __init__(self, database: SyncDatabase):
        """
        Initialize the record store.

        Args:
            database: Initialized SyncDatabase
        """
        self.database = database

    def persist_meeting_record(
        self, meeting: CandidateMeeting, client_name: str
    ) -> None:
        """
        Write a matched meeting as a client meeting record.

        Args:
            meeting: The candidate meeting being imported
            client_name: Client resolved for the meeting

        Raises:
            PersistError: If the record cannot be written
        """
        now = format_timestamp(utc_now())
        try:
            with self.database.connection() as conn:
                conn.execute(
                    """
                    INSERT INTO meeting_records (
                        external_id,
                        client_name,
                        title,
                        url,
                        occurred_at,
                        attendees,
                        created_at,
                        updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(external_id) DO UPDATE SET
                        client_name = excluded.client_name,
                        title = excluded.title,
                        url = excluded.url,
                        occurred_at = excluded.occurred_at,
                        attendees = excluded.attendees,
                        updated_at = excluded.updated_at
                    """,
                    (
                        meeting.external_id,
                        client_name,
                        meeting.title,
                        meeting.url,
                        format_timestamp(meeting.occurred_at),
                        json.dumps(list(meeting.attendee_identities)),
                        now,
                        now,
                    ),
                )
        except sqlite3.Error as e:
            raise PersistError(
                f"Failed to save meeting {meeting.external_id} for {client_name}: {e}"
            ) from e

        logger.debug(f"Saved meeting record {meeting.external_id} for {client_name}")

    def get_record(self, external_id: str) -> Optional[dict[str, Any]]:
        """
        Get a stored meeting record.

        Args:
            external_id: Meeting identifier from the source

        Returns:
            Dictionary with record fields, or None if not found
        """
        with self.database.connection() as conn:
            cursor = conn.execute(
                """
                SELECT external_id, client_name, title, url, occurred_at,
                       attendees, created_at, updated_at
                FROM meeting_records
                WHERE external_id = ?
                """,
                (external_id,),
            )
            row = cursor.fetchone()
            if not row:
                return None
            record = dict(row)
            record["attendees"] = json.loads(record["attendees"] or "[]")
            return record

    def list_for_client(self, client_name: str) -> list[dict[str, Any]]:
        """
        Get all meeting records for a client, newest meeting first.

        Args:
            client_name: Client display name

        Returns:
            List of record dictionaries
        """
        with self.database.connection() as conn:
            cursor = conn.execute(
                """
                SELECT external_id, client_name, title, url, occurred_at
                FROM meeting_records
                WHERE client_name = ?
                ORDER BY occurred_at DESC, id DESC
                """,
                (client_name,),
            )
            return [dict(row) for row in cursor.fetchall()]

    def count(self) -> int:
        """Get the number of imported meeting records."""
        with self.database.connection() as conn:
            result: int = conn.execute(
                "SELECT COUNT(*) FROM meeting_records"
            ).fetchone()[0]
            return result
