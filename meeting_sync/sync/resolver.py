"""
Attendee-to-client resolution.

Given a meeting's attendee list, the resolver picks the client whose mapping
rule matches. Full email rules are tried before domain rules for each
attendee. Two policies decide how attendees and rule kinds interleave:

- attendee_order: for each attendee in input order, try its full address
  then its domain; the first attendee that matches anything wins.
- most_specific: try full addresses across all attendees first, then
  domains across all attendees.

When several rules share a pattern kind the earliest rule wins. Patterns are
unique, so this only matters for callers supplying their own rule lists.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum
from typing import Optional

from meeting_sync.sync.models import MappingRule
from meeting_sync.sync.protocols import MappingRepository
from meeting_sync.utils.logging import get_resolution_logger
from meeting_sync.utils.normalization import extract_domain, normalize_identity

logger = logging.getLogger(__name__)


class MatchPolicy(str, Enum):
    """How the resolver orders attendee and rule-kind lookups."""

    ATTENDEE_ORDER = "attendee_order"
    MOST_SPECIFIC = "most_specific"


DEFAULT_MATCH_POLICY = MatchPolicy.ATTENDEE_ORDER


class _RuleIndex:
    """Lookup tables for one snapshot of the mapping rules."""

    def __init__(self, rules: Sequence[MappingRule]):
        self.emails: dict[str, MappingRule] = {}
        self.domains: dict[str, MappingRule] = {}
        for rule in rules:
            table = self.emails if rule.is_email else self.domains
            table.setdefault(rule.pattern.lower(), rule)

    def __bool__(self) -> bool:
        return bool(self.emails or self.domains)


class MappingResolver:
    """
    Resolves attendee identities to a client name.

    Rules are read from the repository on every call, so mapping edits made
    while a sync is running apply to the meetings resolved afterwards.

    Usage:
        resolver = MappingResolver(mapping_store, MatchPolicy.MOST_SPECIFIC)
        client = resolver.resolve(["bob@acmecorp.com", "me@us.com"])
        if client is None:
            print("unmatched")
    """

    def __init__(
        self,
        mappings: MappingRepository,
        policy: MatchPolicy = DEFAULT_MATCH_POLICY,
    ):
        """
        Initialize the resolver.

        Args:
            mappings: Source of mapping rules
            policy: Attendee/rule ordering policy
        """
        self.mappings = mappings
        self.policy = MatchPolicy(policy)
        self.resolution_logger = get_resolution_logger()

    def resolve(self, attendee_identities: Sequence[str]) -> Optional[str]:
        """
        Find the client for a meeting's attendees.

        Args:
            attendee_identities: Attendee emails in source order

        Returns:
            Matched client name, or None if no attendee matches any rule
        """
        rule = self.resolve_rule(attendee_identities)
        return rule.client_name if rule else None

    def resolve_rule(
        self, attendee_identities: Sequence[str]
    ) -> Optional[MappingRule]:
        """
        Like resolve(), but return the matching rule itself.

        Args:
            attendee_identities: Attendee emails in source order

        Returns:
            The rule that decided the match, or None
        """
        index = _RuleIndex(self.mappings.list_mappings())
        identities = [
            identity
            for identity in (normalize_identity(raw) for raw in attendee_identities)
            if identity
        ]

        if not index or not identities:
            self.resolution_logger.debug(
                f"No match: {len(identities)} attendee(s), "
                f"{len(index.emails) + len(index.domains)} rule(s)"
            )
            return None

        candidates: list[tuple[str, dict[str, MappingRule]]] = []
        if self.policy is MatchPolicy.MOST_SPECIFIC:
            candidates.extend((identity, index.emails) for identity in identities)
            candidates.extend(
                (extract_domain(identity), index.domains) for identity in identities
            )
        else:
            for identity in identities:
                candidates.append((identity, index.emails))
                candidates.append((extract_domain(identity), index.domains))

        for key, table in candidates:
            if key and key in table:
                rule = table[key]
                self.resolution_logger.info(
                    f"MATCHED ({self.policy.value}): {key} -> {rule.client_name} "
                    f"[rule {rule.id}: {rule.pattern}]"
                )
                return rule

        self.resolution_logger.info(
            f"UNMATCHED ({self.policy.value}): {', '.join(identities)}"
        )
        return None
