"""
Unit tests for the sync data models.

Tests CandidateMeeting parsing, SyncLogEntry invariants, and run summaries.
"""

from datetime import datetime, timedelta, timezone

import pytest

from meeting_sync.sync.models import (
    PENDING_STATUS,
    VALID_STATUSES,
    CandidateMeeting,
    MappingRule,
    SyncLogEntry,
    SyncRunSummary,
    SyncStatus,
    format_timestamp,
    parse_timestamp,
)

from .conftest import make_meeting


class TestTimestamps:
    """Tests for timestamp parsing and formatting."""

    def test_parse_z_suffix(self):
        """Test that the 'Z' suffix parses as UTC."""
        parsed = parse_timestamp("2025-01-15T17:02:11Z")
        assert parsed == datetime(2025, 1, 15, 17, 2, 11, tzinfo=timezone.utc)

    def test_parse_naive_is_utc(self):
        """Test that naive timestamps are treated as UTC."""
        parsed = parse_timestamp("2025-01-15T17:02:11")
        assert parsed.tzinfo is not None
        assert parsed.utcoffset() == timedelta(0)

    def test_parse_empty_and_invalid(self):
        """Test that empty or garbage input returns None."""
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None
        assert parse_timestamp("not a date") is None

    def test_format_converts_to_utc(self):
        """Test that formatting normalizes offsets to UTC."""
        value = datetime(2025, 1, 15, 12, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert format_timestamp(value) == "2025-01-15T17:00:00.000000+00:00"

    def test_format_none(self):
        """Test that None formats to None."""
        assert format_timestamp(None) is None

    def test_formatted_values_sort_chronologically(self):
        """Test that stored strings sort in time order."""
        earlier = datetime(2025, 1, 15, 9, 0, 0, tzinfo=timezone.utc)
        later = earlier + timedelta(microseconds=1)
        assert format_timestamp(earlier) < format_timestamp(later)


class TestCandidateMeetingFromApi:
    """Tests for CandidateMeeting.from_api_response."""

    def test_full_response(self):
        """Test parsing a typical Fathom meeting object."""
        item = {
            "recording_id": 123456,
            "title": "Quarterly review",
            "url": "https://fathom.video/calls/123456",
            "created_at": "2025-01-15T17:02:11Z",
            "scheduled_start_time": "2025-01-15T16:30:00Z",
            "calendar_invitees": [
                {"name": "Bob", "email": "bob@acmecorp.com", "is_external": True},
                {"name": "Me", "email": "me@us.com", "is_external": False},
            ],
        }

        meeting = CandidateMeeting.from_api_response(item)

        assert meeting.external_id == "123456"
        assert meeting.title == "Quarterly review"
        assert meeting.url == "https://fathom.video/calls/123456"
        assert meeting.occurred_at == datetime(2025, 1, 15, 16, 30, tzinfo=timezone.utc)
        assert meeting.attendee_identities == ("bob@acmecorp.com", "me@us.com")

    def test_fallback_fields(self):
        """Test the alternate id, title and url keys."""
        item = {
            "id": "abc",
            "meeting_title": "Acme <> Us",
            "share_url": "https://fathom.video/share/abc",
            "invitees": ["bob@acmecorp.com", "  "],
        }

        meeting = CandidateMeeting.from_api_response(item)

        assert meeting.external_id == "abc"
        assert meeting.title == "Acme <> Us"
        assert meeting.url == "https://fathom.video/share/abc"
        assert meeting.occurred_at is None
        assert meeting.attendee_identities == ("bob@acmecorp.com",)

    def test_missing_id_raises(self):
        """Test that an item without an id is rejected."""
        with pytest.raises(ValueError, match="recording_id"):
            CandidateMeeting.from_api_response({"title": "No id"})

    def test_no_attendees(self):
        """Test that a meeting may have no attendees."""
        meeting = CandidateMeeting.from_api_response({"recording_id": 1})
        assert meeting.attendee_identities == ()


class TestSyncLogEntry:
    """Tests for SyncLogEntry invariants and constructors."""

    def test_processed_entry(self):
        """Test that processed entries carry the client name."""
        meeting = make_meeting("m1", "bob@acmecorp.com")
        entry = SyncLogEntry.processed(meeting, "Acme Corp")

        assert entry.status is SyncStatus.PROCESSED
        assert entry.matched_client_name == "Acme Corp"
        assert entry.error_message is None
        assert entry.title == meeting.title
        assert entry.url == meeting.url
        assert entry.occurred_at == meeting.occurred_at
        assert entry.id is None

    def test_unmatched_entry(self):
        """Test that unmatched entries have neither client nor error."""
        entry = SyncLogEntry.unmatched(make_meeting("m1"))
        assert entry.status is SyncStatus.UNMATCHED
        assert entry.matched_client_name is None
        assert entry.error_message is None

    def test_failed_entry(self):
        """Test that failed entries carry an error message."""
        entry = SyncLogEntry.failed(make_meeting("m1"), "disk full")
        assert entry.status is SyncStatus.FAILED
        assert entry.error_message == "disk full"
        assert entry.matched_client_name is None

    def test_failed_entry_default_message(self):
        """Test that an empty error message is replaced."""
        entry = SyncLogEntry.failed(make_meeting("m1"), "")
        assert entry.error_message == "Unknown error"

    def test_processed_requires_client(self):
        """Test that a processed entry without a client is rejected."""
        with pytest.raises(ValueError, match="matched_client_name"):
            SyncLogEntry(external_id="m1", status=SyncStatus.PROCESSED)

    def test_unmatched_rejects_client(self):
        """Test that an unmatched entry with a client is rejected."""
        with pytest.raises(ValueError, match="matched_client_name"):
            SyncLogEntry(
                external_id="m1",
                status=SyncStatus.UNMATCHED,
                matched_client_name="Acme Corp",
            )

    def test_failed_requires_error(self):
        """Test that a failed entry without an error is rejected."""
        with pytest.raises(ValueError, match="error_message"):
            SyncLogEntry(external_id="m1", status=SyncStatus.FAILED)

    def test_status_must_be_enum(self):
        """Test that plain strings are not accepted as a status."""
        with pytest.raises(ValueError, match="Invalid sync status"):
            SyncLogEntry(external_id="m1", status="unmatched")

    def test_pending_is_display_only(self):
        """Test that pending is not one of the stored statuses."""
        assert PENDING_STATUS not in VALID_STATUSES
        assert VALID_STATUSES == {"processed", "unmatched", "failed"}

    def test_synced_at_defaults_to_now(self):
        """Test that synced_at is set at construction."""
        before = datetime.now(timezone.utc)
        entry = SyncLogEntry.unmatched(make_meeting("m1"))
        assert entry.synced_at >= before


class TestMappingRule:
    """Tests for MappingRule."""

    def test_is_email(self):
        """Test distinguishing email rules from domain rules."""
        assert MappingRule(id=1, pattern="bob@acmecorp.com", client_name="A").is_email
        assert not MappingRule(id=2, pattern="acmecorp.com", client_name="A").is_email


class TestSyncRunSummary:
    """Tests for SyncRunSummary."""

    def test_record_counts_each_status(self):
        """Test that record() bumps the matching counter."""
        summary = SyncRunSummary()
        summary.record(SyncLogEntry.processed(make_meeting("m1"), "Acme"))
        summary.record(SyncLogEntry.unmatched(make_meeting("m2")))
        summary.record(SyncLogEntry.failed(make_meeting("m3"), "boom"))
        summary.record(SyncLogEntry.unmatched(make_meeting("m4")))

        assert summary.processed_count == 1
        assert summary.unmatched_count == 2
        assert summary.failed_count == 1
        assert summary.added_count == 4
        assert [e.external_id for e in summary.entries] == ["m1", "m2", "m3", "m4"]

    def test_summary_text(self):
        """Test the human-readable summary."""
        summary = SyncRunSummary(fetched_count=3, skipped_count=2)
        summary.record(SyncLogEntry.processed(make_meeting("m1"), "Acme"))

        text = summary.summary()

        assert "Meetings fetched: 3" in text
        assert "Imported: 1" in text
        assert "Already synced (skipped): 2" in text
        assert "cancelled" not in text

    def test_summary_text_cancelled(self):
        """Test that a cancelled run says so."""
        summary = SyncRunSummary(cancelled=True)
        assert "cancelled" in summary.summary()
