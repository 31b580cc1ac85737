"""Built-in behaviour API client over httpx with tenacity retry.

Provides an async HTTP client for the school back office's behaviour
endpoints. Reads configuration from constructor arguments, a ConductConfig,
or environment variables.

Every endpoint answers with the envelope ``{success, data, message?,
errors?}``. The client unwraps it and raises an ApiClientError subclass for
``success: false`` and for error statuses, so callers only ever see data or
an exception carrying the server's message.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx
import tenacity
from pydantic import ValidationError

from conduct.api.errors import (
    ApiAuthError,
    ApiConfigError,
    ApiEnvelopeError,
    ApiHTTPError,
    ApiResponseError,
    ApiValidationError,
    SubscriptionExpiredError,
)
from conduct.models.catalog import DegreeConfig, ProcedureConfig
from conduct.models.config import ConductConfig
from conduct.models.requests import (
    AutomationResult,
    CreateViolationsPayload,
    ViolationFilters,
)
from conduct.models.roster import Reporter, Student
from conduct.models.violation import ProcedureDefinition, Violation

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
_AUTH_ERROR_STATUS_CODES = {401, 403}

_PREFIX = "/admin/behavior"


def _is_retryable(exc: BaseException) -> bool:
    """Check if an exception is retryable.

    Retryable: 429, 500, 502, 503, 504, connection errors.
    Not retryable: auth, subscription, validation, other client errors.
    """
    if isinstance(exc, ApiHTTPError):
        return exc.status_code in _RETRYABLE_STATUS_CODES
    return isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout))


class BehaviorApiClient:
    """Async httpx client for the behaviour endpoints.

    Implements the BehaviorTransport protocol. GET requests are retried with
    exponential backoff on transient errors (429, 5xx, connection errors).
    POST and DELETE are sent exactly once: toggles are not idempotent, so a
    retried toggle could flip a step back.

    Usage::

        async with BehaviorApiClient(base_url="https://school.example/api",
                                     token="...") as client:
            violations = await client.fetch_violations()
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        *,
        config: ConductConfig | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        wait: tenacity.wait.wait_base | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API base URL. Falls back to ``config.base_url``, which
                itself falls back to CONDUCT_API_BASE_URL.
            token: Bearer token. Falls back to ``config.token``.
            config: Shared configuration; built from the environment if omitted.
            timeout: Request timeout in seconds.
            max_retries: Maximum attempts for retryable GET requests.
            wait: Tenacity wait strategy between GET retries.
            transport: Optional httpx transport (e.g. ``httpx.MockTransport``).

        Raises:
            ApiConfigError: If no base URL is available.
        """
        self._config = config or ConductConfig.from_env()
        self._base_url = (base_url or self._config.base_url or "").rstrip("/")
        if not self._base_url:
            raise ApiConfigError(
                "No base URL provided. Pass base_url= or set CONDUCT_API_BASE_URL "
                "environment variable."
            )
        self._token = token or self._config.token
        self._max_retries = max_retries or self._config.max_retries
        self._wait = wait or (
            tenacity.wait_exponential(multiplier=0.5, min=0.5, max=8)
            + tenacity.wait_random(0, 0.5)
        )
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout or self._config.timeout,
            headers=headers,
            transport=transport,
        )

    @property
    def stage(self) -> str:
        return self._config.stage

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    async def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        """GET with retry; returns the envelope's ``data``."""
        retryer = tenacity.AsyncRetrying(
            retry=tenacity.retry_if_exception(_is_retryable),
            wait=self._wait,
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return await retryer(self._send, "GET", path, params=params)

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
    ) -> Any:
        """Execute a single request (no retry) and unwrap the envelope."""
        logger.debug("%s %s params=%s", method, path, params)
        response = await self._client.request(method, path, params=params, json=json)
        return self._unwrap(response)

    @staticmethod
    def _unwrap(response: httpx.Response) -> Any:
        try:
            body = response.json()
        except ValueError:
            body = None
        server_message = None
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            server_message = body["message"] or None
        status = response.status_code
        detail = server_message or response.reason_phrase or "request failed"

        if status in _AUTH_ERROR_STATUS_CODES:
            raise ApiAuthError(
                f"Authentication failed: HTTP {status} - {detail}",
                server_message=server_message,
                status_code=status,
            )
        if status == 402:
            raise SubscriptionExpiredError(
                f"Subscription expired: {detail}",
                server_message=server_message,
                status_code=status,
            )
        if status == 422:
            errors = body.get("errors") if isinstance(body, dict) else None
            raise ApiValidationError(
                f"Validation failed: {detail}",
                errors=errors if isinstance(errors, dict) else None,
                server_message=server_message,
            )
        if status >= 400:
            raise ApiHTTPError(
                f"HTTP {status} - {detail}",
                server_message=server_message,
                status_code=status,
            )

        if not isinstance(body, dict):
            raise ApiResponseError(
                f"Unexpected response format: expected an envelope object. "
                f"Response: {response.text[:200]}",
                status_code=status,
            )
        if body.get("success") is False:
            raise ApiEnvelopeError(
                server_message or "The server reported a failure",
                server_message=server_message,
                status_code=status,
            )
        if "data" not in body:
            raise ApiResponseError(
                "Unexpected response format: missing 'data' key.",
                status_code=status,
            )
        return body["data"]

    @staticmethod
    def _parse(parse: Callable[[Any], T], data: Any) -> T:
        try:
            return parse(data)
        except (ValidationError, TypeError) as exc:
            raise ApiResponseError(f"Cannot parse response data: {exc}") from exc

    @staticmethod
    def _parse_labels(data: Any) -> dict[str, str]:
        if not isinstance(data, dict):
            raise ApiResponseError(
                f"Expected a key -> label map, got {type(data).__name__}"
            )
        return {str(k): str(v) for k, v in data.items()}

    # ------------------------------------------------------------------
    # Roster and violations
    # ------------------------------------------------------------------

    async def fetch_students(self, search: str | None = None) -> list[Student]:
        params = {"search": search.strip()} if search and search.strip() else None
        data = await self._get(f"{_PREFIX}/students", params)
        return self._parse(lambda d: [Student.model_validate(s) for s in d], data)

    async def fetch_reporters(self) -> list[Reporter]:
        data = await self._get(f"{_PREFIX}/reporters")
        return self._parse(lambda d: [Reporter.model_validate(r) for r in d], data)

    async def fetch_violations(
        self, filters: ViolationFilters | None = None
    ) -> list[Violation]:
        params = filters.to_params() if filters else None
        data = await self._get(f"{_PREFIX}/violations", params or None)
        return self._parse(lambda d: [Violation.model_validate(v) for v in d], data)

    async def fetch_violation(self, violation_id: str) -> Violation:
        data = await self._get(f"{_PREFIX}/violations/{violation_id}")
        return self._parse(Violation.model_validate, data)

    async def create_violations(
        self, payload: CreateViolationsPayload
    ) -> list[Violation]:
        data = await self._send(
            "POST", f"{_PREFIX}/violations", json=payload.to_wire()
        )
        return self._parse(lambda d: [Violation.model_validate(v) for v in d], data)

    async def delete_violation(self, violation_id: str) -> None:
        await self._send("DELETE", f"{_PREFIX}/violations/{violation_id}")

    async def toggle_procedure(self, violation_id: str, step: int) -> Violation:
        data = await self._send(
            "POST", f"{_PREFIX}/violations/{violation_id}/procedures/{step}/toggle"
        )
        return self._parse(Violation.model_validate, data)

    async def toggle_procedure_task(
        self, violation_id: str, step: int, task_id: int
    ) -> Violation:
        data = await self._send(
            "POST",
            f"{_PREFIX}/violations/{violation_id}/procedures/{step}"
            f"/tasks/{task_id}/toggle",
        )
        return self._parse(Violation.model_validate, data)

    async def update_procedure_notes(
        self, violation_id: str, step: int, notes: str
    ) -> Violation:
        data = await self._send(
            "POST",
            f"{_PREFIX}/violations/{violation_id}/procedures/{step}/notes",
            json={"notes": notes},
        )
        return self._parse(Violation.model_validate, data)

    async def execute_automation(
        self, violation_id: str, step: int, task_id: int, system_trigger: str
    ) -> AutomationResult:
        data = await self._send(
            "POST",
            f"{_PREFIX}/violations/{violation_id}/automation",
            json={
                "procedure_step": step,
                "task_id": task_id,
                "system_trigger": system_trigger,
            },
        )
        return self._parse(AutomationResult.model_validate, data)

    async def execute_all_task_automations(
        self, violation_id: str, step: int, task_id: int
    ) -> list[AutomationResult]:
        """Run every automation configured on a task, one result each."""
        data = await self._send(
            "POST",
            f"{_PREFIX}/violations/{violation_id}/procedures/{step}"
            f"/tasks/{task_id}/execute-automations",
        )
        return self._parse(
            lambda d: [AutomationResult.model_validate(r) for r in d], data
        )

    # ------------------------------------------------------------------
    # Catalogs
    # ------------------------------------------------------------------

    async def fetch_roles(self) -> dict[str, str]:
        return self._parse_labels(await self._get(f"{_PREFIX}/config/roles"))

    async def fetch_action_categories(self) -> dict[str, str]:
        return self._parse_labels(
            await self._get(f"{_PREFIX}/config/action-categories")
        )

    async def fetch_system_triggers(self) -> dict[str, str]:
        return self._parse_labels(
            await self._get(f"{_PREFIX}/config/system-triggers")
        )

    async def fetch_notification_templates(self) -> dict[str, str]:
        return self._parse_labels(
            await self._get(f"{_PREFIX}/config/notification-templates")
        )

    async def fetch_violation_types(
        self, stage: str | None = None, degree: int | None = None
    ) -> list[DegreeConfig]:
        params: dict[str, str] = {}
        if stage:
            params["stage"] = stage
        if degree:
            params["degree"] = str(degree)
        data = await self._get(f"{_PREFIX}/config/violation-types", params or None)
        return self._parse(lambda d: [DegreeConfig.model_validate(c) for c in d], data)

    async def fetch_procedures(
        self,
        stage: str | None = None,
        degree: int | None = None,
        repetition: int | None = None,
    ) -> list[ProcedureConfig]:
        params: dict[str, str] = {}
        if stage:
            params["stage"] = stage
        if degree:
            params["degree"] = str(degree)
        if repetition:
            params["repetition"] = str(repetition)
        data = await self._get(f"{_PREFIX}/config/procedures", params or None)
        return self._parse(
            lambda d: [ProcedureConfig.model_validate(c) for c in d], data
        )

    async def fetch_procedures_for_violation(
        self, degree: int, repetition: int, stage: str | None = None
    ) -> ProcedureDefinition:
        params = {"degree": str(degree), "repetition": str(repetition)}
        if stage:
            params["stage"] = stage
        data = await self._get(f"{_PREFIX}/config/procedures-for-violation", params)
        return self._parse(ProcedureDefinition.model_validate, data)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Close the underlying httpx client."""
        await self._client.aclose()

    async def __aenter__(self) -> BehaviorApiClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
