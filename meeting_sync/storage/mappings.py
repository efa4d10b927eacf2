"""
Mapping rule storage.

Persists the ordered collection of email/domain -> client rules used by the
resolver. Patterns are stored lowercase and are unique; rules are added and
removed but never edited in place.
"""

import logging
import sqlite3
from typing import Any, Optional

from meeting_sync.errors import ConflictError, NotFoundError, ValidationError
from meeting_sync.storage.db import SyncDatabase
from meeting_sync.sync.models import (
    MappingRule,
    format_timestamp,
    parse_timestamp,
    utc_now,
)
from meeting_sync.utils.normalization import normalize_pattern

logger = logging.getLogger(__name__)

# Label characters beyond letters and digits; isalnum() covers IDN labels
_LABEL_PUNCTUATION = frozenset("-_")


def _is_domain(value: str) -> bool:
    labels = value.split(".")
    return all(
        label and all(ch.isalnum() or ch in _LABEL_PUNCTUATION for ch in label)
        for label in labels
    )


def validate_pattern(pattern: str) -> str:
    """
    Normalize and validate a mapping pattern.

    Internationalized and underscore host names are accepted as typed. Only
    whitespace, stray punctuation, empty labels and repeated "@" are
    rejected.

    Args:
        pattern: Raw pattern, a bare domain or a full email address

    Returns:
        Normalized pattern

    Raises:
        ValidationError: If the pattern is empty or not a domain/email
    """
    normalized = normalize_pattern(pattern)
    if not normalized:
        raise ValidationError("Pattern must not be empty")

    if any(ch.isspace() for ch in normalized) or normalized.count("@") > 1:
        kind = "email" if "@" in normalized else "domain"
        raise ValidationError(f"Invalid {kind} pattern: '{pattern.strip()}'")

    if "@" in normalized:
        local, _, domain = normalized.partition("@")
        if not local or not _is_domain(domain):
            raise ValidationError(f"Invalid email pattern: '{pattern.strip()}'")
    elif not _is_domain(normalized):
        raise ValidationError(f"Invalid domain pattern: '{pattern.strip()}'")

    return normalized


class MappingStore:
    """
    SQLite-backed store of mapping rules.

    Rules are returned in insertion order, which is the rule order the
    resolver iterates.

    Usage:
        store = MappingStore(database)
        rule = store.add_mapping("acmecorp.com", "Acme Corp", created_by="ops@us.com")
        for rule in store.list_mappings():
            print(rule.pattern, "->", rule.client_name)
        store.remove_mapping(rule.id)
    """

    def __init__(self, database: SyncDatabase):
        """
        Initialize the mapping store.

        Args:
            database: Initialized SyncDatabase
        """
        self.database = database

    @staticmethod
    def _row_to_rule(row: Any) -> MappingRule:
        return MappingRule(
            id=row["id"],
            pattern=row["pattern"],
            client_name=row["client_name"],
            created_by=row["created_by"],
            created_at=parse_timestamp(row["created_at"]),
        )

    def list_mappings(self) -> list[MappingRule]:
        """
        Get all mapping rules in insertion order.

        Returns:
            List of MappingRule
        """
        with self.database.connection() as conn:
            cursor = conn.execute(
                """
                SELECT id, pattern, client_name, created_by, created_at
                FROM domain_mappings
                ORDER BY id
                """
            )
            return [self._row_to_rule(row) for row in cursor.fetchall()]

    def get_mapping(self, mapping_id: int) -> Optional[MappingRule]:
        """
        Get a mapping rule by id.

        Args:
            mapping_id: Rule identifier

        Returns:
            MappingRule, or None if not found
        """
        with self.database.connection() as conn:
            cursor = conn.execute(
                """
                SELECT id, pattern, client_name, created_by, created_at
                FROM domain_mappings
                WHERE id = ?
                """,
                (mapping_id,),
            )
            row = cursor.fetchone()
            return self._row_to_rule(row) if row else None

    def add_mapping(
        self, pattern: str, client_name: str, created_by: Optional[str] = None
    ) -> MappingRule:
        """
        Add a new mapping rule.

        Args:
            pattern: Bare domain ("acmecorp.com") or email ("bob@acmecorp.com")
            client_name: Client display name the pattern maps to
            created_by: Operator identity, kept for audit

        Returns:
            The stored MappingRule

        Raises:
            ValidationError: If pattern or client_name is empty after trimming,
                or the pattern is not a domain/email
            ConflictError: If a rule with the same normalized pattern exists
        """
        client_name = (client_name or "").strip()
        if not (pattern or "").strip():
            raise ValidationError("Pattern must not be empty")
        if not client_name:
            raise ValidationError("Client name must not be empty")

        normalized = validate_pattern(pattern)
        created_at = utc_now()

        try:
            with self.database.connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO domain_mappings (pattern, client_name, created_by, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (normalized, client_name, created_by, format_timestamp(created_at)),
                )
                mapping_id = cursor.lastrowid
        except sqlite3.IntegrityError as e:
            raise ConflictError(
                f"A mapping for '{normalized}' already exists"
            ) from e

        logger.info(f"Added mapping {normalized} -> {client_name}")
        return MappingRule(
            id=int(mapping_id or 0),
            pattern=normalized,
            client_name=client_name,
            created_by=created_by,
            created_at=created_at,
        )

    def remove_mapping(self, mapping_id: int) -> None:
        """
        Remove a mapping rule.

        Args:
            mapping_id: Rule identifier

        Raises:
            NotFoundError: If no rule has this id
        """
        with self.database.connection() as conn:
            cursor = conn.execute(
                "DELETE FROM domain_mappings WHERE id = ?", (mapping_id,)
            )
            if cursor.rowcount == 0:
                raise NotFoundError(f"Mapping {mapping_id} not found")

        logger.info(f"Removed mapping {mapping_id}")

    def count(self) -> int:
        """Get the number of mapping rules."""
        with self.database.connection() as conn:
            result: int = conn.execute(
                "SELECT COUNT(*) FROM domain_mappings"
            ).fetchone()[0]
            return result
