"""
Entry point for running meeting_sync as a module.

Usage:
    python -m meeting_sync --help
    python -m meeting_sync sync --since 24h
    python -m meeting_sync mappings add acmecorp.com "Acme Corp"
"""

from meeting_sync.cli import cli

if __name__ == "__main__":
    cli()
