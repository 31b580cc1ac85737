"""Configuration models for Conduct.

ConductConfig holds per-process settings shared by the API client, the
violation repository and the catalog cache.
"""

from __future__ import annotations

import os
from typing import Literal, Optional

from pydantic import BaseModel, Field

DEFAULT_BASE_URL = "http://localhost:8000/api"

# Quiet period after the last notes edit before the write is sent.
NOTES_DEBOUNCE_SECONDS = 0.6


class ConductConfig(BaseModel):
    """Client configuration.

    ``base_url`` and ``token`` fall back to the ``CONDUCT_API_BASE_URL`` and
    ``CONDUCT_API_TOKEN`` environment variables when built with
    :meth:`from_env`.
    """

    base_url: str = DEFAULT_BASE_URL
    token: Optional[str] = None
    timeout: float = 30.0
    max_retries: int = Field(default=3, ge=1)
    stage: str = "elementary"
    notes_debounce_seconds: float = Field(default=NOTES_DEBOUNCE_SECONDS, ge=0)
    locale: Literal["en", "ar"] = "en"

    @classmethod
    def from_env(cls, **overrides: object) -> ConductConfig:
        """Build a config from ``CONDUCT_*`` environment variables.

        Explicit keyword overrides win over the environment; ``None``
        overrides are ignored.
        """
        values: dict[str, object] = {}
        base_url = os.environ.get("CONDUCT_API_BASE_URL")
        if base_url:
            values["base_url"] = base_url
        token = os.environ.get("CONDUCT_API_TOKEN")
        if token:
            values["token"] = token
        locale = os.environ.get("CONDUCT_LOCALE")
        if locale:
            values["locale"] = locale
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
