"""Client for the host application's records API."""

from safety_rating.api.base_client import (
    APIError,
    AuthenticationError,
    BaseClient,
    RateLimitError,
    parse_retry_after,
)
from safety_rating.api.records_client import PayloadValidationError, RecordsClient

__all__ = [
    "APIError",
    "AuthenticationError",
    "BaseClient",
    "RateLimitError",
    "parse_retry_after",
    "RecordsClient",
    "PayloadValidationError",
]
