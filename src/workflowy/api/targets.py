"""Target API wrappers for the Workflowy API.

Targets are named insertion points (user shortcuts and system locations such
as the inbox).  Their keys can be used wherever a parent node ID is accepted.
"""

from __future__ import annotations

from typing import Any

from workflowy.cancel import CancelToken
from workflowy.models import Target

from .transport import AsyncWorkflowyTransport, WorkflowyTransport


def _targets(payload: Any) -> list[Target]:
    return [Target.from_dict(item) for item in (payload or {}).get("targets") or []]


class TargetAPI:
    """Synchronous wrapper for ``/targets``."""

    def __init__(self, transport: WorkflowyTransport) -> None:
        self._transport = transport

    def list(self, *, cancel: CancelToken | None = None) -> list[Target]:
        """Return all targets, including system targets whose node does not exist yet."""
        return _targets(self._transport.request("GET", "/targets", cancel=cancel))


class AsyncTargetAPI:
    """Asynchronous wrapper for ``/targets``."""

    def __init__(self, transport: AsyncWorkflowyTransport) -> None:
        self._transport = transport

    async def list(self) -> list[Target]:
        """Return all targets (async)."""
        return _targets(await self._transport.request("GET", "/targets"))
