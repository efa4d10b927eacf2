"""
Webhook boundary for meetings pushed by Fathom.

Turns an inbound payload into CandidateMeeting objects and checks the
optional shared secret sent in the x-webhook-secret header. The sync engine
never sees raw payloads or headers.
"""

import hmac
import json
import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from meeting_sync.errors import ValidationError
from meeting_sync.sync.models import CandidateMeeting

# Header carrying the shared secret
WEBHOOK_SECRET_HEADER = "x-webhook-secret"

# Environment variable holding the expected secret
DEFAULT_WEBHOOK_SECRET_ENV = "FATHOM_WEBHOOK_SECRET"

logger = logging.getLogger(__name__)


class WebhookAuthError(ValidationError):
    """Raised when the shared secret is missing or wrong."""

    pass


def verify_webhook_secret(
    headers: Mapping[str, str], expected_secret: Optional[str]
) -> None:
    """
    Check the x-webhook-secret header against the configured secret.

    When no secret is configured every request is accepted.

    Args:
        headers: Request headers (matched case-insensitively)
        expected_secret: Configured secret, or None/empty to disable the check

    Raises:
        WebhookAuthError: If a secret is configured and the header is missing
            or does not match
    """
    if not expected_secret:
        return

    provided = None
    for name, value in headers.items():
        if name.lower() == WEBHOOK_SECRET_HEADER:
            provided = value
            break

    if provided is None:
        raise WebhookAuthError(f"Missing {WEBHOOK_SECRET_HEADER} header")

    if not hmac.compare_digest(
        provided.encode("utf-8"), expected_secret.encode("utf-8")
    ):
        raise WebhookAuthError("Webhook secret does not match")


def _meeting_items(payload: Any) -> list[Any]:
    """Unwrap the meeting object(s) from the supported payload shapes."""
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        raise ValidationError("Webhook payload must be a JSON object or array")

    for key in ("items", "meetings"):
        if isinstance(payload.get(key), list):
            return list(payload[key])
    for key in ("meeting", "data"):
        if isinstance(payload.get(key), dict):
            return [payload[key]]
    return [payload]


def parse_webhook_payload(
    body: Union[str, bytes, dict, list],
) -> list[CandidateMeeting]:
    """
    Map an inbound webhook payload to candidate meetings.

    Accepts a single meeting object, an envelope with a ``meeting`` or
    ``data`` object, or a list (bare or under ``items``/``meetings``).

    Args:
        body: Raw JSON text/bytes or an already-decoded payload

    Returns:
        Candidate meetings in payload order

    Raises:
        ValidationError: If the body is not valid JSON or a meeting has no id
    """
    if isinstance(body, (str, bytes)):
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise ValidationError(f"Webhook payload is not valid JSON: {e}") from e
    else:
        payload = body

    meetings: list[CandidateMeeting] = []
    for item in _meeting_items(payload):
        if not isinstance(item, dict):
            raise ValidationError("Webhook meeting entries must be JSON objects")
        try:
            meetings.append(CandidateMeeting.from_api_response(item))
        except ValueError as e:
            raise ValidationError(f"Invalid webhook meeting: {e}") from e

    logger.debug(f"Parsed {len(meetings)} meetings from webhook payload")
    return meetings
