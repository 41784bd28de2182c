"""Read-only HTTP client for the host application's API."""

import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import requests

from safety_rating.errors import SafetyRatingError
from safety_rating.utils.config import (
    DEFAULT_TIMEOUT,
    MAX_RETRIES,
    RATE_LIMIT_MAX_WAIT,
    RECORDS_API_TOKEN,
    RETRY_BACKOFF_FACTOR,
)
from safety_rating.utils.logging_config import get_logger


class APIError(SafetyRatingError):
    """Base exception for API-related errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(APIError):
    """Raised when the host API rejects the service token (401/403)."""


class RateLimitError(APIError):
    """Raised when the host API asks for a longer pause than we will wait."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


def parse_retry_after(value: str | None) -> float | None:
    """Seconds to wait according to a Retry-After header.

    The header is either delta-seconds or an HTTP date. Returns None when
    it is missing or unparseable.
    """
    if not value:
        return None
    value = value.strip()
    if value.isdigit():
        return float(value)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


class BaseClient:
    """GET-only JSON client with retry and rate-limit handling.

    - Timeouts, connection errors and 5xx responses are retried with
      exponential backoff
    - 429 waits out the server's Retry-After when it is within
      `max_rate_limit_wait`, otherwise raises RateLimitError at once
    - 401/403 raise AuthenticationError; other 4xx raise APIError, neither
      is retried
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        api_token: str | None = RECORDS_API_TOKEN,
        max_rate_limit_wait: float = RATE_LIMIT_MAX_WAIT,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL for API requests
            timeout: Request timeout in seconds
            max_retries: Retries after the first attempt
            api_token: Service token sent as a bearer header
            max_rate_limit_wait: Longest Retry-After (seconds) to wait out
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.max_rate_limit_wait = max_rate_limit_wait
        self.logger = get_logger(__name__)
        self._session = requests.Session()
        self._session.headers.update({
            "Accept": "application/json",
            "User-Agent": "Safety-Rating-Engine/1.0",
        })
        if api_token:
            self._session.headers["Authorization"] = f"Bearer {api_token}"

    def _calculate_backoff(self, attempt: int) -> float:
        """Exponential backoff delay in seconds (attempt 0 is the first retry)."""
        return float(RETRY_BACKOFF_FACTOR ** attempt)

    def get(self, endpoint: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET a JSON resource.

        Args:
            endpoint: Path relative to base_url
            params: Optional query parameters

        Returns:
            Parsed JSON response

        Raises:
            AuthenticationError: If the token is rejected
            RateLimitError: If the API asks for too long a pause, or keeps
                rate limiting until retries run out
            APIError: On other client errors, or when retries run out
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        last_error: Exception | None = None

        for attempt in range(self.max_retries + 1):
            delay = self._calculate_backoff(attempt)
            try:
                self.logger.debug("Records API request", url=url, attempt=attempt + 1)
                response = self._session.get(url, params=params, timeout=self.timeout)
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                last_error = e
                self.logger.warning(
                    "Records API unreachable",
                    url=url,
                    attempt=attempt + 1,
                    error=str(e),
                )
            else:
                status = response.status_code
                if status in (401, 403):
                    raise AuthenticationError(
                        f"Records API rejected credentials: {status}",
                        status_code=status,
                    )
                if status == 429:
                    retry_after = parse_retry_after(response.headers.get("Retry-After"))
                    message = "Rate limit exceeded"
                    if retry_after is not None:
                        message += f". Retry after {retry_after:.0f}s"
                    last_error = RateLimitError(message, retry_after=retry_after)
                    if retry_after is not None:
                        if retry_after > self.max_rate_limit_wait:
                            self.logger.warning(
                                "Rate limit pause too long",
                                retry_after=retry_after,
                                max_wait=self.max_rate_limit_wait,
                            )
                            raise last_error
                        delay = retry_after
                    self.logger.warning(
                        "Rate limit exceeded",
                        retry_after=retry_after,
                        attempt=attempt + 1,
                    )
                elif status >= 500:
                    last_error = APIError(f"Server error: {status}", status_code=status)
                    self.logger.warning(
                        "Records API server error",
                        status_code=status,
                        attempt=attempt + 1,
                    )
                elif status >= 400:
                    raise APIError(f"Client error: {status}", status_code=status)
                else:
                    self.logger.debug(
                        "Request successful",
                        status_code=status,
                        content_length=len(response.content),
                    )
                    return response.json()  # type: ignore[no-any-return]

            if attempt < self.max_retries:
                self.logger.info(
                    "Retrying request",
                    delay_seconds=delay,
                    next_attempt=attempt + 2,
                )
                time.sleep(delay)

        if isinstance(last_error, RateLimitError):
            raise last_error
        raise APIError(
            f"Request failed after {self.max_retries + 1} attempts: {last_error}",
            status_code=getattr(last_error, "status_code", None),
        ) from last_error

    def close(self) -> None:
        """Close the underlying session."""
        self._session.close()

    def __enter__(self) -> "BaseClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
