"""
Exception hierarchy for meeting import reconciliation.

Mutation errors (ValidationError, ConflictError, NotFoundError) are raised
straight to the caller. FetchError aborts a sync run. PersistError is caught
per meeting by the sync engine and recorded as a failed log entry.
"""


class MeetingSyncError(Exception):
    """Base class for all meeting_sync errors."""

    pass


class ValidationError(MeetingSyncError):
    """Raised when a mutation receives malformed input (e.g. empty pattern)."""

    pass


class ConflictError(MeetingSyncError):
    """Raised when a uniqueness constraint would be violated."""

    pass


class NotFoundError(MeetingSyncError):
    """Raised when an operation references an unknown record."""

    pass


class FetchError(MeetingSyncError):
    """Raised when candidate meetings cannot be fetched from the source."""

    pass


class PersistError(MeetingSyncError):
    """Raised when a matched meeting cannot be written downstream."""

    pass


__all__ = [
    "MeetingSyncError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "FetchError",
    "PersistError",
]
