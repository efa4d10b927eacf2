"""
Identity normalization utilities for attendee matching.

Provides consistent normalization of attendee emails and mapping patterns
so that rule lookups are case- and whitespace-insensitive.
"""

from __future__ import annotations

import re
import unicodedata

# "Bob Smith <bob@acmecorp.com>" style display addresses
_DISPLAY_ADDRESS_RE = re.compile(r"<([^<>]+)>")


def normalize_identity(value: str | None) -> str:
    """
    Normalize an attendee identity (usually an email address).

    Args:
        value: Raw identity such as " Bob@AcmeCorp.com " or
               "Bob <bob@acmecorp.com>"

    Returns:
        Lowercase address with surrounding whitespace and display name removed,
        or an empty string for empty input
    """
    if not value:
        return ""

    normalized = unicodedata.normalize("NFKC", value).strip()

    # Unwrap display-name form
    match = _DISPLAY_ADDRESS_RE.search(normalized)
    if match:
        normalized = match.group(1).strip()

    if normalized.lower().startswith("mailto:"):
        normalized = normalized[len("mailto:") :]

    return normalized.lower()


def normalize_pattern(value: str | None) -> str:
    """
    Normalize a mapping rule pattern (bare domain or full email).

    A leading "@" on a domain ("@acmecorp.com") and a trailing dot are dropped.

    Args:
        value: Pattern as entered by an operator

    Returns:
        Normalized lowercase pattern, or empty string
    """
    normalized = normalize_identity(value)
    if normalized.startswith("@"):
        normalized = normalized[1:]
    return normalized.rstrip(".")


def extract_domain(identity: str) -> str:
    """
    Get the domain part of a normalized identity.

    Args:
        identity: Normalized email address

    Returns:
        Substring after the last "@", or empty string if there is none
    """
    if "@" not in identity:
        return ""
    return identity.rsplit("@", 1)[1]
