"""
Data models for meeting import reconciliation.

Provides the records exchanged between the meeting source, the resolver,
the sync engine and the stores:
- CandidateMeeting: a meeting fetched from Fathom, not yet reconciled
- MappingRule: an email/domain -> client association
- SyncLogEntry: the immutable outcome of processing one meeting
- SyncRunSummary: what a single sync run did
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class SyncStatus(str, Enum):
    """Terminal outcome of processing a candidate meeting."""

    PROCESSED = "processed"  # Matched a client and the meeting record was written
    UNMATCHED = "unmatched"  # No mapping rule matched any attendee
    FAILED = "failed"  # Matched, but the downstream write (or processing) failed


# Display-only state for entries not yet finalized; the engine never writes it
PENDING_STATUS = "pending"

VALID_STATUSES = {status.value for status in SyncStatus}


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    Handles the 'Z' suffix used by Fathom and treats naive values as UTC.

    Args:
        value: ISO string, datetime, or None

    Returns:
        Aware datetime, or None if value is empty or unparseable
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to ISO-8601 for storage and API parameters."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    # Fixed offset and precision keep stored values lexically sortable
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _extract_attendees(raw: Any) -> list[str]:
    """Pull email-like strings out of an invitee list of dicts or strings."""
    attendees: list[str] = []
    for invitee in raw or []:
        if isinstance(invitee, dict):
            email = invitee.get("email") or invitee.get("email_address")
        else:
            email = invitee
        if isinstance(email, str) and email.strip():
            attendees.append(email.strip())
    return attendees


@dataclass(frozen=True)
class CandidateMeeting:
    """
    A meeting fetched from the recording service.

    Attributes:
        external_id: Stable identifier from Fathom, used as the dedup key
        title: Meeting title
        url: Link to the recording
        occurred_at: When the meeting took place (or was recorded)
        attendee_identities: Invitee emails in the order the source lists them

    Usage:
        meeting = CandidateMeeting.from_api_response(item)
        print(meeting.external_id, meeting.attendee_identities)
    """

    external_id: str
    title: str = ""
    url: Optional[str] = None
    occurred_at: Optional[datetime] = None
    attendee_identities: tuple[str, ...] = ()

    @classmethod
    def from_api_response(cls, item: dict[str, Any]) -> CandidateMeeting:
        """
        Create a CandidateMeeting from a Fathom meeting object.

        Example API response structure::

            {
                'recording_id': 123456,
                'title': 'Quarterly review',
                'meeting_title': 'Acme <> Us',
                'url': 'https://fathom.video/calls/123456',
                'share_url': 'https://fathom.video/share/abc',
                'created_at': '2025-01-15T17:02:11Z',
                'scheduled_start_time': '2025-01-15T16:30:00Z',
                'calendar_invitees': [
                    {'name': 'Bob', 'email': 'bob@acmecorp.com', 'is_external': True}
                ]
            }

        Args:
            item: Meeting dictionary from the API or a webhook payload

        Returns:
            CandidateMeeting populated from the response

        Raises:
            ValueError: If the item carries no usable identifier
        """
        raw_id = item.get("recording_id") or item.get("id") or item.get("meeting_id")
        if raw_id is None or str(raw_id).strip() == "":
            raise ValueError("Meeting has no recording_id or id")

        title = item.get("title") or item.get("meeting_title") or ""
        url = item.get("url") or item.get("share_url")

        occurred_at = None
        for key in (
            "recording_start_time",
            "scheduled_start_time",
            "created_at",
            "occurred_at",
        ):
            occurred_at = parse_timestamp(item.get(key))
            if occurred_at is not None:
                break

        raw_attendees = (
            item.get("calendar_invitees")
            or item.get("invitees")
            or item.get("attendees")
            or []
        )

        return cls(
            external_id=str(raw_id).strip(),
            title=str(title),
            url=url,
            occurred_at=occurred_at,
            attendee_identities=tuple(_extract_attendees(raw_attendees)),
        )


@dataclass(frozen=True)
class MappingRule:
    """
    Association of an email address or bare domain with a client.

    Rules are never edited in place; remove and re-add to change one.

    Attributes:
        id: Store-assigned identifier
        pattern: Lowercase domain ("acmecorp.com") or address ("bob@acmecorp.com")
        client_name: Exact display name of the client
        created_by: Operator who added the rule (audit only)
        created_at: When the rule was added
    """

    id: int
    pattern: str
    client_name: str
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_email(self) -> bool:
        """True if the pattern is a full email address rather than a domain."""
        return "@" in self.pattern


@dataclass(frozen=True)
class SyncLogEntry:
    """
    Immutable record of one processed meeting.

    ``matched_client_name`` is set only for processed entries and
    ``error_message`` only for failed ones.

    Usage:
        entry = SyncLogEntry.processed(meeting, "Acme Corp")
        stored = sync_log.append(entry)
        print(stored.id)
    """

    external_id: str
    status: SyncStatus
    title: str = ""
    url: Optional[str] = None
    occurred_at: Optional[datetime] = None
    matched_client_name: Optional[str] = None
    error_message: Optional[str] = None
    synced_at: datetime = field(default_factory=utc_now)
    id: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.status, SyncStatus):
            raise ValueError(f"Invalid sync status: {self.status!r}")
        if (self.status is SyncStatus.PROCESSED) != bool(self.matched_client_name):
            raise ValueError(
                "matched_client_name must be set exactly when status is processed"
            )
        if (self.status is SyncStatus.FAILED) != bool(self.error_message):
            raise ValueError("error_message must be set exactly when status is failed")

    @classmethod
    def processed(
        cls, meeting: CandidateMeeting, client_name: str
    ) -> SyncLogEntry:
        """Build an entry for a meeting imported under ``client_name``."""
        return cls(
            external_id=meeting.external_id,
            status=SyncStatus.PROCESSED,
            title=meeting.title,
            url=meeting.url,
            occurred_at=meeting.occurred_at,
            matched_client_name=client_name,
        )

    @classmethod
    def unmatched(cls, meeting: CandidateMeeting) -> SyncLogEntry:
        """Build an entry for a meeting whose attendees matched no rule."""
        return cls(
            external_id=meeting.external_id,
            status=SyncStatus.UNMATCHED,
            title=meeting.title,
            url=meeting.url,
            occurred_at=meeting.occurred_at,
        )

    @classmethod
    def failed(cls, meeting: CandidateMeeting, error_message: str) -> SyncLogEntry:
        """Build an entry for a meeting that could not be imported."""
        return cls(
            external_id=meeting.external_id,
            status=SyncStatus.FAILED,
            title=meeting.title,
            url=meeting.url,
            occurred_at=meeting.occurred_at,
            error_message=error_message or "Unknown error",
        )


@dataclass
class SyncRunSummary:
    """
    Result of a single sync run.

    Contains the entries appended during the run, in fetch order, so callers
    can show immediate feedback before reloading the full log.
    """

    processed_count: int = 0
    unmatched_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    fetched_count: int = 0
    cancelled: bool = False
    entries: list[SyncLogEntry] = field(default_factory=list)

    @property
    def added_count(self) -> int:
        """Number of log entries written during this run."""
        return len(self.entries)

    def record(self, entry: SyncLogEntry) -> None:
        """Add an appended entry and bump the matching counter."""
        self.entries.append(entry)
        if entry.status is SyncStatus.PROCESSED:
            self.processed_count += 1
        elif entry.status is SyncStatus.UNMATCHED:
            self.unmatched_count += 1
        elif entry.status is SyncStatus.FAILED:
            self.failed_count += 1
        else:
            raise ValueError(f"Unhandled sync status: {entry.status!r}")

    def summary(self) -> str:
        """
        Generate a human-readable summary of the run.

        Returns:
            Formatted multi-line string
        """
        lines = [
            "Sync Summary:",
            f"  Meetings fetched: {self.fetched_count}",
            f"  Imported: {self.processed_count}",
            f"  Unmatched: {self.unmatched_count}",
            f"  Failed: {self.failed_count}",
            f"  Already synced (skipped): {self.skipped_count}",
        ]
        if self.cancelled:
            lines.append("  Run was cancelled before all meetings were processed")
        return "\n".join(lines)
