"""
SQLite database module for meeting sync state.

Provides the shared connection handling and schema for the mapping rules,
the sync log, and imported meeting records.
"""

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from typing import Optional

# SQL Schema for mapping rules, the sync log and imported meetings
SCHEMA = """
CREATE TABLE IF NOT EXISTS domain_mappings (
    id INTEGER PRIMARY KEY,
    pattern TEXT NOT NULL,
    client_name TEXT NOT NULL,
    created_by TEXT,
    created_at TEXT NOT NULL,
    UNIQUE(pattern)
);

CREATE INDEX IF NOT EXISTS idx_domain_mappings_pattern ON domain_mappings(pattern);

CREATE TABLE IF NOT EXISTS sync_log (
    id INTEGER PRIMARY KEY,
    external_id TEXT NOT NULL,
    title TEXT,
    url TEXT,
    occurred_at TEXT,
    status TEXT NOT NULL CHECK (status IN ('processed', 'unmatched', 'failed')),
    matched_client_name TEXT,
    error_message TEXT,
    synced_at TEXT NOT NULL,
    UNIQUE(external_id)
);

CREATE INDEX IF NOT EXISTS idx_sync_log_synced_at ON sync_log(synced_at);
CREATE INDEX IF NOT EXISTS idx_sync_log_status ON sync_log(status);

CREATE TABLE IF NOT EXISTS meeting_records (
    id INTEGER PRIMARY KEY,
    external_id TEXT NOT NULL,
    client_name TEXT NOT NULL,
    title TEXT,
    url TEXT,
    occurred_at TEXT,
    attendees TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE(external_id)
);

CREATE INDEX IF NOT EXISTS idx_meeting_records_client ON meeting_records(client_name);
"""


class SyncDatabase:
    """
    SQLite database manager shared by the meeting sync stores.

    Owns connection handling and schema creation; the mapping store, the sync
    log and the meeting record store each take a SyncDatabase instance.

    Usage:
        db = SyncDatabase('/path/to/meeting_sync.db')
        db.initialize()

        # Or use in-memory for testing:
        db = SyncDatabase(':memory:')
        db.initialize()
    """

    def __init__(self, db_path: str):
        """
        Initialize the database manager.

        Args:
            db_path: Path to SQLite database file, or ':memory:' for in-memory database
        """
        self.db_path = db_path
        self._shared_connection: Optional[sqlite3.Connection] = None

    def _get_connection(self) -> sqlite3.Connection:
        """
        Get a database connection.

        For in-memory databases, returns a shared connection to ensure
        schema persists across operations. For file databases, creates
        a new connection each time.

        Returns:
            sqlite3.Connection: Database connection
        """
        if self.db_path == ":memory:":
            # For in-memory, use shared connection so schema persists
            if self._shared_connection is None:
                self._shared_connection = sqlite3.connect(
                    ":memory:", check_same_thread=False
                )
                self._shared_connection.row_factory = sqlite3.Row
            return self._shared_connection
        else:
            # For file databases, create new connection
            conn = sqlite3.connect(self.db_path, timeout=30.0)
            conn.row_factory = sqlite3.Row
            return conn

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for database connections.

        Commits on success and rolls back on any exception, so each block is
        one atomic unit of work.

        Yields:
            sqlite3.Connection: Database connection

        Usage:
            with db.connection() as conn:
                conn.execute("SELECT * FROM sync_log")
        """
        conn = self._get_connection()
        is_shared = self.db_path == ":memory:"
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            # Only close if not using shared connection
            if not is_shared:
                conn.close()

    def initialize(self) -> None:
        """
        Initialize the database schema.

        Creates all tables and indexes if they don't exist.
        """
        with self.connection() as conn:
            conn.executescript(SCHEMA)

    def __repr__(self) -> str:
        return f"SyncDatabase(db_path={self.db_path!r})"
