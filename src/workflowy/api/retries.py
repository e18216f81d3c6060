"""Rate-limit retry policy.

The Workflowy API answers ``429 Too Many Requests`` with a ``Retry-After``
header.  The transport honours it with a small, strictly bounded number of
retries.  This module holds the pieces of that policy that do not touch the
network:

* :func:`parse_retry_after` -- turn the header into a wait in seconds.
* :func:`should_retry_rate_limit` -- decide whether another attempt is allowed.
* :func:`wait_before_retry` -- sleep through an injectable :class:`Clock`,
  racing the caller's :class:`~workflowy.cancel.CancelToken`.
"""

from __future__ import annotations

import asyncio
import re
import threading
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Protocol, runtime_checkable

from workflowy.cancel import CancelToken

_INT_RE = re.compile(r"^[+-]?\d+$")

MAX_RETRY_AFTER_SECONDS = threading.TIMEOUT_MAX
"""Longest wait the clock can block for.  Larger hints are not retried."""


def parse_http_date(value: str) -> datetime | None:
    """Parse an HTTP-date into an aware UTC datetime, or return ``None``.

    Accepts IMF-fixdate as well as the obsolete RFC 850 and asctime forms
    (RFC 9110 section 5.6.7).  Parsing does not depend on the process locale.
    """
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_retry_after(value: str | None, now: datetime) -> float:
    """Return how many seconds to wait according to a ``Retry-After`` value.

    Parameters
    ----------
    value:
        Raw header value.  Either delta-seconds (``"120"``) or an HTTP-date
        (``"Wed, 21 Oct 2015 07:28:00 GMT"``).
    now:
        Reference time used for HTTP-dates.  Naive datetimes are taken as UTC.

    Returns
    -------
    float
        Seconds to wait, never negative.  Empty, malformed and past values
        all yield ``0.0``.
    """
    if not value:
        return 0.0
    stripped = value.strip()
    if _INT_RE.match(stripped):
        try:
            seconds = int(stripped)
        except ValueError:
            # Beyond the interpreter's integer string limit.
            return 0.0
        return float(max(seconds, 0))

    retry_at = parse_http_date(stripped)
    if retry_at is None:
        return 0.0
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return max((retry_at - now).total_seconds(), 0.0)


def should_retry_rate_limit(delay: float, attempt: int, max_retries: int) -> bool:
    """Decide whether a 429 answer may be retried.

    Parameters
    ----------
    delay:
        Parsed ``Retry-After`` wait in seconds.  A non-positive wait means
        the server gave no usable hint, and a wait beyond
        :data:`MAX_RETRY_AFTER_SECONDS` cannot be slept through; neither is
        retried.
    attempt:
        0-indexed number of the attempt that was just rate limited.
    max_retries:
        Retries allowed after the initial attempt.
    """
    return 0 < delay <= MAX_RETRY_AFTER_SECONDS and attempt < max_retries


# ---------------------------------------------------------------------------
# Clock seam
# ---------------------------------------------------------------------------

class WaitOutcome(str, Enum):
    """Result of :func:`wait_before_retry`."""

    ELAPSED = "elapsed"
    CANCELLED = "cancelled"


@runtime_checkable
class Clock(Protocol):
    """Time source used by the transport.

    Swap in a fake implementation to drive retries in tests without real
    sleeping.
    """

    def now(self) -> datetime:
        """Current wall-clock time as an aware UTC datetime."""
        ...

    def sleep(self, seconds: float, cancel: CancelToken | None = None) -> WaitOutcome:
        """Block for *seconds* unless *cancel* becomes done first."""
        ...

    async def asleep(self, seconds: float) -> None:
        """Suspend the current task for *seconds*.  Cancellable as any await."""
        ...


class SystemClock:
    """:class:`Clock` backed by the real system time."""

    __slots__ = ()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def sleep(self, seconds: float, cancel: CancelToken | None = None) -> WaitOutcome:
        if cancel is None:
            time.sleep(seconds)
            return WaitOutcome.ELAPSED
        if cancel.wait(seconds):
            return WaitOutcome.CANCELLED
        return WaitOutcome.ELAPSED

    async def asleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


def wait_before_retry(
    delay: float,
    clock: Clock,
    cancel: CancelToken | None = None,
) -> WaitOutcome:
    """Wait *delay* seconds before the next attempt.

    Cancellation takes priority: a token that is done at any point up to
    the end of the wait yields :attr:`WaitOutcome.CANCELLED`.
    """
    if cancel is not None and cancel.done:
        return WaitOutcome.CANCELLED
    outcome = clock.sleep(delay, cancel)
    if outcome is WaitOutcome.ELAPSED and cancel is not None and cancel.done:
        return WaitOutcome.CANCELLED
    return outcome
