"""
meeting_sync.api - Meeting source adapters

Fathom REST client and webhook payload handling.
"""
