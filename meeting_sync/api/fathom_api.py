"""
Fathom API client for fetching candidate meetings.

Provides a thin wrapper over the Fathom external API:
- Listing meetings created after a cutoff, with cursor pagination
- Exponential backoff retry for rate limits and server errors
- Mapping every transport failure to FetchError so a sync run aborts cleanly
"""

import logging
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any, Optional

import requests

from meeting_sync.errors import FetchError
from meeting_sync.sync.models import CandidateMeeting, format_timestamp

# Base URL of the Fathom external API
DEFAULT_BASE_URL = "https://api.fathom.ai/external/v1"

# Environment variable holding the API key
DEFAULT_API_KEY_ENV = "FATHOM_API_KEY"

# Request timeout in seconds
DEFAULT_TIMEOUT = 30.0

# Maximum number of meetings per page when listing
DEFAULT_PAGE_SIZE = 50

# Safety stop for runaway pagination
MAX_PAGES = 1000

# Retry configuration defaults
DEFAULT_MAX_RETRIES = 5
DEFAULT_INITIAL_RETRY_DELAY = 1.0  # seconds
DEFAULT_MAX_RETRY_DELAY = 60.0  # seconds

logger = logging.getLogger(__name__)


class FathomAPIError(FetchError):
    """Raised when a Fathom API operation fails."""

    pass


class FathomAuthError(FathomAPIError):
    """Raised when the API key is missing or rejected."""

    pass


class RateLimitError(FathomAPIError):
    """Raised when rate limit is exceeded and retries are exhausted."""

    pass


class _RetryableStatus(Exception):
    """Internal signal that a response should be retried."""

    def __init__(self, response: requests.Response):
        super().__init__(f"HTTP {response.status_code}")
        self.response = response


class FathomAPI:
    """
    Fathom API wrapper implementing the MeetingSource capability.

    Attributes:
        api_key: Fathom API key sent as the X-Api-Key header
        base_url: API root URL
        session: requests session reused across calls

    Usage:
        api = FathomAPI(api_key)
        meetings = api.fetch_candidate_meetings(created_after)
        for meeting in meetings:
            print(meeting.external_id, meeting.title)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_retry_delay: float = DEFAULT_INITIAL_RETRY_DELAY,
        max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the Fathom API wrapper.

        Args:
            api_key: Fathom API key
            base_url: API root URL (default Fathom external v1)
            timeout: Per-request timeout in seconds (default 30)
            page_size: Meetings per page when listing (default 50)
            max_retries: Maximum attempts for a failed request (default 5)
            initial_retry_delay: Initial backoff delay in seconds (default 1.0)
            max_retry_delay: Maximum backoff delay in seconds (default 60.0)
            session: Optional preconfigured requests session

        Raises:
            FathomAuthError: If api_key is empty
        """
        if not api_key or not api_key.strip():
            raise FathomAuthError("Fathom API key is not configured")

        self.api_key = api_key.strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.page_size = max(1, page_size)
        self.max_retries = max(1, max_retries)
        self.initial_retry_delay = initial_retry_delay
        self.max_retry_delay = max_retry_delay
        self.session = session or requests.Session()
        self.session.headers.update(
            {"X-Api-Key": self.api_key, "Accept": "application/json"}
        )

    def _retry_with_backoff(
        self, operation: Callable[[], requests.Response], operation_name: str
    ) -> requests.Response:
        """
        Execute a request with exponential backoff retry.

        Args:
            operation: Callable performing the HTTP request
            operation_name: Name for logging purposes

        Returns:
            The successful response

        Raises:
            FathomAuthError: On 401/403
            RateLimitError: If retries are exhausted due to rate limits
            FathomAPIError: For other API, network or timeout errors
        """
        delay = self.initial_retry_delay

        for attempt in range(self.max_retries):
            is_last = attempt >= self.max_retries - 1
            try:
                response = operation()
                status_code = response.status_code

                if status_code in (401, 403):
                    raise FathomAuthError(
                        f"{operation_name} rejected by Fathom ({status_code}); "
                        "check the API key"
                    )

                if status_code == 429 or status_code >= 500:
                    raise _RetryableStatus(response)

                if status_code >= 400:
                    logger.error(
                        f"{operation_name} failed with status {status_code}: "
                        f"{response.text[:200]}"
                    )
                    raise FathomAPIError(
                        f"{operation_name} failed with status {status_code}"
                    )

                return response

            except _RetryableStatus as e:
                status_code = e.response.status_code
                if is_last:
                    if status_code == 429:
                        raise RateLimitError(
                            f"Rate limit exceeded for {operation_name} "
                            f"after {self.max_retries} attempts"
                        ) from None
                    raise FathomAPIError(
                        f"{operation_name} failed with status {status_code} "
                        f"after {self.max_retries} attempts"
                    ) from None

                retry_after = e.response.headers.get("Retry-After", "")
                wait = float(retry_after) if retry_after.isdigit() else delay
                wait = min(wait, self.max_retry_delay)
                logger.warning(
                    f"{operation_name} got status {status_code}, retrying in "
                    f"{wait:.1f}s (attempt {attempt + 1}/{self.max_retries})"
                )
                time.sleep(wait)
                delay = min(delay * 2, self.max_retry_delay)

            except requests.Timeout as e:
                raise FathomAPIError(
                    f"{operation_name} timed out after {self.timeout}s"
                ) from e

            except requests.ConnectionError as e:
                if is_last:
                    raise FathomAPIError(
                        f"{operation_name} could not reach Fathom: {e}"
                    ) from e
                logger.warning(
                    f"{operation_name} connection error, retrying in {delay:.1f}s"
                )
                time.sleep(delay)
                delay = min(delay * 2, self.max_retry_delay)

            except requests.RequestException as e:
                raise FathomAPIError(f"{operation_name} failed: {e}") from e

        # Should not reach here, but just in case
        raise FathomAPIError(f"{operation_name} failed after all retries")

    def list_meetings(self, created_after: datetime) -> list[dict[str, Any]]:
        """
        List raw meeting objects created after a cutoff.

        Args:
            created_after: Lower bound on meeting creation time

        Returns:
            Meeting dictionaries across all pages, in API order

        Raises:
            FathomAPIError: If listing fails
        """
        url = f"{self.base_url}/meetings"
        items: list[dict[str, Any]] = []
        cursor: Optional[str] = None

        for _ in range(MAX_PAGES):
            params: dict[str, Any] = {
                "created_after": format_timestamp(created_after),
                "include_calendar_invitees": "true",
                "limit": self.page_size,
            }
            if cursor:
                params["cursor"] = cursor

            def execute_list(p: dict[str, Any] = params) -> requests.Response:
                return self.session.get(url, params=p, timeout=self.timeout)

            response = self._retry_with_backoff(execute_list, "list_meetings")

            try:
                payload = response.json()
            except ValueError as e:
                raise FathomAPIError("list_meetings returned invalid JSON") from e

            if isinstance(payload, list):
                page_items, cursor = payload, None
            elif isinstance(payload, dict):
                page_items = payload.get("items") or payload.get("meetings") or []
                cursor = payload.get("next_cursor")
            else:
                raise FathomAPIError("list_meetings returned an unexpected payload")

            items.extend(item for item in page_items if isinstance(item, dict))

            if not cursor:
                break
        else:
            logger.warning(f"Stopped listing meetings after {MAX_PAGES} pages")

        logger.debug(f"Listed {len(items)} raw meetings from Fathom")
        return items

    def fetch_candidate_meetings(
        self, created_after: datetime
    ) -> list[CandidateMeeting]:
        """
        Fetch meetings created after a cutoff as CandidateMeeting objects.

        Items without a usable identifier are logged and dropped.

        Args:
            created_after: Lower bound on meeting creation time

        Returns:
            List of CandidateMeeting in API order

        Raises:
            FetchError: If the meetings cannot be fetched
        """
        meetings: list[CandidateMeeting] = []
        for item in self.list_meetings(created_after):
            try:
                meetings.append(CandidateMeeting.from_api_response(item))
            except ValueError as e:
                logger.warning(f"Failed to parse meeting: {e}")
                continue

        logger.info(f"Listed {len(meetings)} meetings")
        return meetings

    def check_connection(self) -> bool:
        """
        Verify that the API key is accepted.

        Returns:
            True if a minimal listing request succeeds

        Raises:
            FetchError: If the request fails
        """
        url = f"{self.base_url}/meetings"

        def execute_check() -> requests.Response:
            return self.session.get(url, params={"limit": 1}, timeout=self.timeout)

        self._retry_with_backoff(execute_check, "check_connection")
        return True
