"""Low-level Workflowy API layer: transports and endpoint wrappers."""

from __future__ import annotations

from .nodes import AsyncNodeAPI, NodeAPI
from .retries import (
    Clock,
    SystemClock,
    WaitOutcome,
    parse_retry_after,
    wait_before_retry,
)
from .targets import AsyncTargetAPI, TargetAPI
from .transport import AsyncWorkflowyTransport, PreparedRequest, WorkflowyTransport

__all__ = [
    "AsyncNodeAPI",
    "AsyncTargetAPI",
    "AsyncWorkflowyTransport",
    "Clock",
    "NodeAPI",
    "PreparedRequest",
    "SystemClock",
    "TargetAPI",
    "WaitOutcome",
    "WorkflowyTransport",
    "parse_retry_after",
    "wait_before_retry",
]
