"""Cooperative cancellation for synchronous calls.

A :class:`CancelToken` is handed to any client method through its ``cancel``
argument.  The transport checks it before every attempt and races it against
the rate-limit wait, so a cancelled (or expired) token always wins over an
outstanding retry.

Usage::

    token = CancelToken(timeout=30)
    threading.Timer(5, token.cancel).start()
    client.get_node("abc", cancel=token)

Async callers use ordinary task cancellation (``task.cancel()``,
``asyncio.wait_for``) instead.
"""

from __future__ import annotations

import threading
import time

from workflowy.errors import WorkflowyCancelledError, WorkflowyDeadlineExceededError


class CancelToken:
    """Thread-safe cancellation signal with an optional deadline.

    Parameters
    ----------
    timeout:
        Seconds from construction after which the token counts as done.
        ``None`` means no deadline.
    """

    __slots__ = ("_deadline", "_event")

    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline: float | None = (
            time.monotonic() + timeout if timeout is not None else None
        )

    def cancel(self) -> None:
        """Signal cancellation.  Idempotent."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def deadline_exceeded(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def done(self) -> bool:
        return self.cancelled or self.deadline_exceeded

    def remaining(self) -> float | None:
        """Seconds until the deadline (never negative), or ``None``."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def wait(self, seconds: float) -> bool:
        """Block for up to *seconds*; return ``True`` if the token became done.

        Returns as soon as :meth:`cancel` is called or the deadline passes.
        """
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            # The deadline lands inside the wait.
            while not self.done:
                self._event.wait(self.remaining())
            return True
        return self._event.wait(seconds) or self.done

    def error(self) -> WorkflowyCancelledError:
        """Return the error describing why the token is done."""
        if not self.cancelled and self.deadline_exceeded:
            return WorkflowyDeadlineExceededError()
        return WorkflowyCancelledError()

    def raise_if_done(self) -> None:
        """Raise the matching cancellation error if the token is done."""
        if self.done:
            raise self.error()
