"""
Unit tests for attendee-to-client resolution.

Covers both match policies, normalization of attendee identities, and the
tie-breaking rules.
"""

from unittest.mock import MagicMock

import pytest

from meeting_sync.sync.models import MappingRule
from meeting_sync.sync.protocols import MappingRepository
from meeting_sync.sync.resolver import (
    DEFAULT_MATCH_POLICY,
    MappingResolver,
    MatchPolicy,
)


def make_rules(*pairs):
    """Build MappingRules with ids in the given order."""
    return [
        MappingRule(id=i, pattern=pattern, client_name=client)
        for i, (pattern, client) in enumerate(pairs, start=1)
    ]


def make_resolver(rules, policy=DEFAULT_MATCH_POLICY):
    repo = MagicMock(spec=MappingRepository)
    repo.list_mappings.return_value = rules
    return MappingResolver(repo, policy)


class TestMatchPolicy:
    """Tests for the MatchPolicy enum."""

    def test_default_is_attendee_order(self):
        """Test the default policy."""
        assert DEFAULT_MATCH_POLICY is MatchPolicy.ATTENDEE_ORDER

    def test_policy_from_string(self):
        """Test that the resolver accepts policy values as strings."""
        resolver = make_resolver([], "most_specific")
        assert resolver.policy is MatchPolicy.MOST_SPECIFIC

    def test_invalid_policy(self):
        """Test that unknown policies are rejected."""
        with pytest.raises(ValueError):
            make_resolver([], "fuzzy")


class TestResolveBasics:
    """Behaviour shared by both policies."""

    @pytest.fixture(params=list(MatchPolicy))
    def policy(self, request):
        return request.param

    def test_domain_match(self, policy):
        """Test that a domain rule matches any address at that domain."""
        resolver = make_resolver(make_rules(("acmecorp.com", "Acme Corp")), policy)
        assert resolver.resolve(["bob@acmecorp.com"]) == "Acme Corp"

    def test_email_match(self, policy):
        """Test that an email rule matches the exact address."""
        resolver = make_resolver(make_rules(("bob@gmail.com", "Bob's Bakery")), policy)
        assert resolver.resolve(["bob@gmail.com"]) == "Bob's Bakery"
        assert resolver.resolve(["alice@gmail.com"]) is None

    def test_no_attendees(self, policy):
        """Test that a meeting with no attendees is unmatched."""
        resolver = make_resolver(make_rules(("acmecorp.com", "Acme Corp")), policy)
        assert resolver.resolve([]) is None

    def test_no_rules(self, policy):
        """Test that nothing matches an empty rule set."""
        resolver = make_resolver([], policy)
        assert resolver.resolve(["bob@acmecorp.com"]) is None

    def test_case_and_whitespace_insensitive(self, policy):
        """Test that attendee identities are normalized before lookup."""
        resolver = make_resolver(make_rules(("acmecorp.com", "Acme Corp")), policy)
        assert resolver.resolve(["  Bob@AcmeCorp.COM "]) == "Acme Corp"

    def test_display_name_address(self, policy):
        """Test that 'Name <address>' attendees are unwrapped."""
        resolver = make_resolver(make_rules(("bob@acmecorp.com", "Acme Corp")), policy)
        assert resolver.resolve(["Bob Smith <Bob@acmecorp.com>"]) == "Acme Corp"

    def test_blank_identities_ignored(self, policy):
        """Test that empty attendee strings are skipped."""
        resolver = make_resolver(make_rules(("acmecorp.com", "Acme Corp")), policy)
        assert resolver.resolve(["", "   ", "bob@acmecorp.com"]) == "Acme Corp"

    def test_subdomain_does_not_match_parent(self, policy):
        """Test that domain rules match the exact domain only."""
        resolver = make_resolver(make_rules(("acmecorp.com", "Acme Corp")), policy)
        assert resolver.resolve(["bob@eu.acmecorp.com"]) is None

    def test_identity_without_at_sign(self, policy):
        """Test that a non-email identity matches nothing."""
        resolver = make_resolver(make_rules(("acmecorp.com", "Acme Corp")), policy)
        assert resolver.resolve(["acmecorp.com"]) is None

    def test_email_beats_domain_for_same_attendee(self, policy):
        """Test that a full-address rule wins over its domain rule."""
        resolver = make_resolver(
            make_rules(
                ("gmail.com", "Gmail Catch-all"),
                ("bob@gmail.com", "Bob's Bakery"),
            ),
            policy,
        )
        assert resolver.resolve(["bob@gmail.com"]) == "Bob's Bakery"
        assert resolver.resolve(["alice@gmail.com"]) == "Gmail Catch-all"

    def test_first_rule_wins_for_duplicate_patterns(self, policy):
        """Test that the earliest rule wins when patterns repeat."""
        resolver = make_resolver(
            make_rules(("acmecorp.com", "Acme Corp"), ("acmecorp.com", "Acme Dup")),
            policy,
        )
        assert resolver.resolve(["bob@acmecorp.com"]) == "Acme Corp"

    def test_resolve_rule_returns_rule(self, policy):
        """Test that resolve_rule exposes the deciding rule."""
        rules = make_rules(("acmecorp.com", "Acme Corp"))
        resolver = make_resolver(rules, policy)

        assert resolver.resolve_rule(["bob@acmecorp.com"]) == rules[0]
        assert resolver.resolve_rule(["x@unknown.io"]) is None

    def test_rules_reloaded_per_call(self, policy):
        """Test that mapping edits apply to the next resolution."""
        repo = MagicMock(spec=MappingRepository)
        repo.list_mappings.return_value = []
        resolver = MappingResolver(repo, policy)

        assert resolver.resolve(["bob@acmecorp.com"]) is None

        repo.list_mappings.return_value = make_rules(("acmecorp.com", "Acme Corp"))
        assert resolver.resolve(["bob@acmecorp.com"]) == "Acme Corp"


class TestAttendeeOrderPolicy:
    """Tests for the attendee_order policy."""

    def test_first_attendee_domain_beats_later_email(self):
        """Test that an earlier attendee's domain match wins."""
        resolver = make_resolver(
            make_rules(
                ("acmecorp.com", "Acme Corp"),
                ("carol@globex.com", "Globex"),
            ),
            MatchPolicy.ATTENDEE_ORDER,
        )

        client = resolver.resolve(["bob@acmecorp.com", "carol@globex.com"])

        assert client == "Acme Corp"

    def test_attendee_order_decides_between_domains(self):
        """Test that input order decides between two domain rules."""
        resolver = make_resolver(
            make_rules(("globex.com", "Globex"), ("acmecorp.com", "Acme Corp")),
            MatchPolicy.ATTENDEE_ORDER,
        )

        assert resolver.resolve(["bob@acmecorp.com", "x@globex.com"]) == "Acme Corp"
        assert resolver.resolve(["x@globex.com", "bob@acmecorp.com"]) == "Globex"

    def test_skips_unmatched_attendees(self):
        """Test that attendees without rules are passed over."""
        resolver = make_resolver(
            make_rules(("acmecorp.com", "Acme Corp")), MatchPolicy.ATTENDEE_ORDER
        )

        client = resolver.resolve(["me@us.com", "friend@gmail.com", "bob@acmecorp.com"])

        assert client == "Acme Corp"


class TestMostSpecificPolicy:
    """Tests for the most_specific policy."""

    def test_later_email_beats_earlier_domain(self):
        """Test that any email match wins over every domain match."""
        resolver = make_resolver(
            make_rules(
                ("acmecorp.com", "Acme Corp"),
                ("carol@globex.com", "Globex"),
            ),
            MatchPolicy.MOST_SPECIFIC,
        )

        client = resolver.resolve(["bob@acmecorp.com", "carol@globex.com"])

        assert client == "Globex"

    def test_domains_in_attendee_order(self):
        """Test that domain matches follow attendee order."""
        resolver = make_resolver(
            make_rules(("globex.com", "Globex"), ("acmecorp.com", "Acme Corp")),
            MatchPolicy.MOST_SPECIFIC,
        )

        assert resolver.resolve(["bob@acmecorp.com", "x@globex.com"]) == "Acme Corp"

    def test_emails_in_attendee_order(self):
        """Test that the first attendee with an email rule wins."""
        resolver = make_resolver(
            make_rules(("carol@globex.com", "Globex"), ("bob@acmecorp.com", "Acme")),
            MatchPolicy.MOST_SPECIFIC,
        )

        assert resolver.resolve(["bob@acmecorp.com", "carol@globex.com"]) == "Acme"
