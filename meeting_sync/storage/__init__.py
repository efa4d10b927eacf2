"""
meeting_sync.storage - SQLite persistence

Database schema, mapping rules, sync log, and imported meeting records.
"""
