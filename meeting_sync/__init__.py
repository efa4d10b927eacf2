"""
meeting_sync - Meeting import reconciliation.

Imports recorded meetings from Fathom, matches attendees to clients through
email/domain mapping rules, and keeps an auditable sync log.
"""

__version__ = "0.1.0"
