"""
meeting_sync.sync - Reconciliation engine

Attendee resolution, deduplication, sync runs, and log statistics.
"""
