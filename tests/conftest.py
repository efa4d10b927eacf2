"""Shared fixtures for the meeting_sync test suite."""

from datetime import datetime, timezone

import pytest

from meeting_sync.errors import FetchError
from meeting_sync.storage.db import SyncDatabase
from meeting_sync.storage.mappings import MappingStore
from meeting_sync.storage.records import MeetingRecordStore
from meeting_sync.storage.sync_log import SyncLog
from meeting_sync.sync.models import CandidateMeeting

CUTOFF = datetime(2025, 1, 1, tzinfo=timezone.utc)


def make_meeting(external_id, *attendees, title=None):
    """Build a CandidateMeeting with sensible defaults."""
    return CandidateMeeting(
        external_id=external_id,
        title=title or f"Meeting {external_id}",
        url=f"https://fathom.video/calls/{external_id}",
        occurred_at=datetime(2025, 1, 15, 16, 30, tzinfo=timezone.utc),
        attendee_identities=tuple(attendees),
    )


class FakeMeetingSource:
    """In-memory MeetingSource returning a fixed list of meetings."""

    def __init__(self, meetings=None, error=None):
        self.meetings = list(meetings or [])
        self.error = error
        self.calls = []

    def fetch_candidate_meetings(self, created_after):
        self.calls.append(created_after)
        if self.error is not None:
            raise self.error
        return list(self.meetings)


class FailingRecordWriter:
    """MeetingRecordWriter that fails for selected meetings."""

    def __init__(self, fail_ids=(), error=None):
        self.fail_ids = set(fail_ids)
        self.error = error
        self.written = []

    def persist_meeting_record(self, meeting, client_name):
        if meeting.external_id in self.fail_ids:
            raise self.error
        self.written.append((meeting.external_id, client_name))


@pytest.fixture
def database():
    """Initialized in-memory database."""
    db = SyncDatabase(":memory:")
    db.initialize()
    return db


@pytest.fixture
def mapping_store(database):
    return MappingStore(database)


@pytest.fixture
def sync_log(database):
    return SyncLog(database)


@pytest.fixture
def record_store(database):
    return MeetingRecordStore(database)


@pytest.fixture
def fetch_error():
    return FetchError("Could not reach Fathom")
