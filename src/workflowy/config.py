"""Client configuration for workflowy.

:class:`WorkflowyConfig` captures every tuneable knob of the client.  An
instance is shared by reference between the transport and the API wrappers
and is treated as immutable once built: the transport setters swap in a new
instance (see :func:`dataclasses.replace`) instead of mutating fields.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Any

from workflowy._version import __version__

DEFAULT_BASE_URL = "https://workflowy.com/api/v1"
"""Root of the public Workflowy API."""

DEFAULT_TIMEOUT_SECONDS = 15.0

DEFAULT_RATE_LIMIT_MAX_RETRIES = 3
"""Retries after a 429 answer (four attempts in total)."""

DEFAULT_USER_AGENT = f"workflowy-python/{__version__} (+https://workflowy.com)"


def normalize_base_url(base_url: str | None) -> str:
    """Strip whitespace and trailing slashes; empty input yields the default."""
    trimmed = (base_url or "").strip().rstrip("/")
    return trimmed or DEFAULT_BASE_URL


@dataclass
class WorkflowyConfig:
    """Complete configuration for a workflowy client.

    Parameters
    ----------
    api_key:
        Workflowy API key.  Sent as ``Authorization: Bearer <key>`` on every
        request.  Surrounding whitespace is removed.  Never logged.
    base_url:
        API root URL.  Trailing slashes are removed and an empty value resets
        to :data:`DEFAULT_BASE_URL`.
    timeout_seconds:
        Timeout of the ``httpx`` client the transport creates by default.
    http_proxy:
        Optional HTTP/HTTPS proxy URL for the default client.
    user_agent:
        Value of the ``User-Agent`` header.
    rate_limit_max_retries:
        How many times a request answered with ``429`` is retried.  The
        total number of attempts is this value plus one.
    metrics:
        Optional :class:`~workflowy.observability.MetricsHook` backend.
    debug_dump_payload:
        Write the (redacted) request and response of every exchange to
        *stderr*.
    """

    api_key: str = ""

    base_url: str = DEFAULT_BASE_URL

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    http_proxy: str | None = None

    user_agent: str = DEFAULT_USER_AGENT

    rate_limit_max_retries: int = DEFAULT_RATE_LIMIT_MAX_RETRIES

    metrics: Any | None = None

    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Normalize and validate configuration after initialization."""
        from urllib.parse import urlparse

        self.api_key = (self.api_key or "").strip()
        self.base_url = normalize_base_url(self.base_url)

        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect your API key, or target localhost for testing."
            )

        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.rate_limit_max_retries < 0:
            raise ValueError(
                f"rate_limit_max_retries must be >= 0, got {self.rate_limit_max_retries}"
            )

    @classmethod
    def from_env(cls, **overrides: Any) -> WorkflowyConfig:
        """Build a config from ``WORKFLOWY_API_KEY`` / ``WORKFLOWY_BASE_URL``.

        Keyword arguments take precedence over the environment.
        """
        values: dict[str, Any] = {
            "api_key": os.environ.get("WORKFLOWY_API_KEY", ""),
            "base_url": os.environ.get("WORKFLOWY_BASE_URL", ""),
        }
        values.update(overrides)
        return cls(**values)

    def __repr__(self) -> str:
        """Mask the API key to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "api_key":
                masked = f"...{val[-4:]}" if len(val) >= 8 else "****"
                parts.append(f"api_key='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"WorkflowyConfig({', '.join(parts)})"
