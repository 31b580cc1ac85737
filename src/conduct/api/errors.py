"""Behaviour API error hierarchy.

All transport errors inherit from ConductError for consistent exception
handling. Every error carries the message the server put in its envelope,
when there was one, so stores can surface it instead of a fallback.
"""

from __future__ import annotations

from conduct.exceptions import ConductError


class ApiClientError(ConductError):
    """Base for all behaviour API client errors.

    Attributes:
        server_message: The ``message`` field of the response envelope, or
            None if the server did not send one.
        status_code: HTTP status of the failing response, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        server_message: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.server_message = server_message
        self.status_code = status_code
        super().__init__(message)


class ApiConfigError(ApiClientError):
    """Missing or invalid client configuration (e.g., no base URL)."""


class ApiEnvelopeError(ApiClientError):
    """The server answered ``success: false``."""


class ApiAuthError(ApiClientError):
    """Authentication failed (401/403)."""


class SubscriptionExpiredError(ApiClientError):
    """The school's subscription has lapsed (402)."""


class ApiValidationError(ApiClientError):
    """The server rejected the request body (422).

    Attributes:
        errors: Field name -> list of validation messages.
    """

    def __init__(
        self,
        message: str,
        *,
        errors: dict[str, list[str]] | None = None,
        server_message: str | None = None,
        status_code: int | None = 422,
    ) -> None:
        self.errors = errors or {}
        super().__init__(message, server_message=server_message, status_code=status_code)


class ApiHTTPError(ApiClientError):
    """Any other non-success HTTP status."""


class ApiResponseError(ApiClientError):
    """Unexpected response format from the behaviour API."""


def resolve_error_message(error: BaseException, fallback: str) -> str:
    """Pick the text to show for ``error``.

    The server's envelope message wins when the error came from the API;
    anything else shows the localised ``fallback``.
    """
    if isinstance(error, ApiClientError) and error.server_message:
        return error.server_message
    return fallback
