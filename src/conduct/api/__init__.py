"""Transport layer for Conduct.

Provides the httpx-based behaviour API client, the transport protocol the
stores depend on, and the transport error hierarchy.
"""

from conduct.api.client import BehaviorApiClient
from conduct.api.errors import (
    ApiAuthError,
    ApiClientError,
    ApiConfigError,
    ApiEnvelopeError,
    ApiHTTPError,
    ApiResponseError,
    ApiValidationError,
    SubscriptionExpiredError,
    resolve_error_message,
)
from conduct.api.protocols import BehaviorTransport

__all__ = [
    "BehaviorApiClient",
    "BehaviorTransport",
    "ApiClientError",
    "ApiConfigError",
    "ApiEnvelopeError",
    "ApiAuthError",
    "SubscriptionExpiredError",
    "ApiValidationError",
    "ApiHTTPError",
    "ApiResponseError",
    "resolve_error_message",
]
