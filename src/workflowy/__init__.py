"""workflowy — typed Python client for the Workflowy API.

Public re-exports
-----------------

* **Clients:** :class:`WorkflowyClient`, :class:`AsyncWorkflowyClient`
* **Configuration:** :class:`WorkflowyConfig`, :data:`DEFAULT_BASE_URL`
* **Cancellation:** :class:`CancelToken`
* **Errors:** Every :class:`WorkflowyError` subclass and :class:`ErrorCode`
* **Models:** :class:`Node`, :class:`Target`, the input dataclasses and enums

Usage::

    from workflowy import WorkflowyClient

    client = WorkflowyClient(api_key="...")
    node_id = client.create_node(name="API Test Node")
    print(client.get_node(node_id).name)
"""

from __future__ import annotations

from workflowy._version import __version__

# ── Clients ────────────────────────────────────────────────────────────
from workflowy.async_client import AsyncWorkflowyClient
from workflowy.cancel import CancelToken
from workflowy.client import WorkflowyClient

# ── Configuration ───────────────────────────────────────────────────────
from workflowy.config import DEFAULT_BASE_URL, WorkflowyConfig

# ── Errors ──────────────────────────────────────────────────────────────
from workflowy.errors import (
    ErrorCode,
    WorkflowyAPIError,
    WorkflowyAuthError,
    WorkflowyCancelledError,
    WorkflowyContractError,
    WorkflowyDeadlineExceededError,
    WorkflowyError,
    WorkflowyNetworkError,
    WorkflowyNotFoundError,
    WorkflowyPermissionError,
    WorkflowyRateLimitError,
    WorkflowyRequestError,
    WorkflowyValidationError,
)

# ── Models ──────────────────────────────────────────────────────────────
from workflowy.models import (
    LayoutMode,
    Node,
    NodeCreate,
    NodeMove,
    NodeUpdate,
    Position,
    Target,
    TargetType,
    sort_by_priority,
)

__all__ = [
    # Clients
    "WorkflowyClient",
    "AsyncWorkflowyClient",
    "CancelToken",
    # Configuration
    "WorkflowyConfig",
    "DEFAULT_BASE_URL",
    # Errors
    "ErrorCode",
    "WorkflowyError",
    "WorkflowyValidationError",
    "WorkflowyRequestError",
    "WorkflowyNetworkError",
    "WorkflowyCancelledError",
    "WorkflowyDeadlineExceededError",
    "WorkflowyAPIError",
    "WorkflowyAuthError",
    "WorkflowyPermissionError",
    "WorkflowyNotFoundError",
    "WorkflowyRateLimitError",
    "WorkflowyContractError",
    # Models
    "Node",
    "Target",
    "NodeCreate",
    "NodeUpdate",
    "NodeMove",
    "LayoutMode",
    "Position",
    "TargetType",
    "sort_by_priority",
]
