"""Metrics hook protocol and no-op default implementation.

The transport reports counters and timings for every exchange.  By default a
:class:`NoopMetricsHook` discards them; pass any object satisfying
:class:`MetricsHook` as ``WorkflowyConfig(metrics=...)`` to forward them to
StatsD, Prometheus or similar.

Emitted metric names:

* ``workflowy.requests_total``       -- counter, tagged with ``status``
* ``workflowy.request_duration_ms``  -- timing
* ``workflowy.rate_limited_total``   -- counter, one per 429 answer
* ``workflowy.retries_total``        -- counter, one per replayed request
* ``workflowy.retry_after_seconds``  -- gauge, the wait asked for by the last 429
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    *tags* is an optional ``str -> str`` mapping; backends translate it to
    their own labelling scheme.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Metrics backend that silently discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
