"""Node API wrappers for the Workflowy API.

Provides :class:`NodeAPI` (sync) and :class:`AsyncNodeAPI` (async) thin
wrappers around the ``/nodes`` endpoints.  Each method validates its
required arguments locally, builds the path and body, delegates the exchange
(auth, retries, error classification) to the transport and unwraps the
response envelope into model objects.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote, urlencode

from workflowy.cancel import CancelToken
from workflowy.errors import WorkflowyContractError, WorkflowyValidationError
from workflowy.models import Node, NodeCreate, NodeMove, NodeUpdate

from .transport import AsyncWorkflowyTransport, WorkflowyTransport

STATUS_OK = "ok"


def node_path(node_id: str, action: str = "") -> str:
    """Return ``/nodes/{id}[/action]`` with *node_id* percent-escaped."""
    path = "/nodes/" + quote(node_id, safe="")
    return f"{path}/{action}" if action else path


def list_path(parent_id: str | None = None) -> str:
    """Return ``/nodes``, filtered by *parent_id* when given."""
    if parent_id:
        return "/nodes?" + urlencode({"parent_id": parent_id})
    return "/nodes"


def _require_id(node_id: str) -> None:
    if not node_id:
        raise WorkflowyValidationError("node_id is required", context={"field": "node_id"})


def _check_create(data: NodeCreate) -> None:
    if not data.name:
        raise WorkflowyValidationError("name is required", context={"field": "name"})


def _check_move(node_id: str, data: NodeMove) -> None:
    _require_id(node_id)
    if not data.parent_id:
        raise WorkflowyValidationError("parent_id is required", context={"field": "parent_id"})


def _nodes(payload: Any) -> list[Node]:
    return [Node.from_dict(item) for item in (payload or {}).get("nodes") or []]


def _created_id(payload: Any) -> str:
    item_id = (payload or {}).get("item_id") or ""
    if not item_id:
        raise WorkflowyContractError(
            "empty item_id in response",
            context={"operation": "create"},
        )
    return item_id


def _check_status(payload: Any, operation: str) -> None:
    status = (payload or {}).get("status", "")
    if status != STATUS_OK:
        raise WorkflowyContractError(
            f"unexpected status: {status}",
            context={"operation": operation, "status": status},
        )


class NodeAPI:
    """Synchronous wrapper for the Workflowy Nodes API.

    Parameters
    ----------
    transport:
        A configured :class:`WorkflowyTransport` instance.
    """

    def __init__(self, transport: WorkflowyTransport) -> None:
        self._transport = transport

    def get(self, node_id: str, *, cancel: CancelToken | None = None) -> Node:
        """Fetch a single node by its ID.

        Raises
        ------
        WorkflowyValidationError
            If *node_id* is empty.
        WorkflowyNotFoundError
            If the node does not exist.
        """
        _require_id(node_id)
        data = self._transport.request("GET", node_path(node_id), cancel=cancel)
        return Node.from_dict((data or {}).get("node"))

    def list(self, parent_id: str | None = None, *, cancel: CancelToken | None = None) -> list[Node]:
        """Return the children of *parent_id*, or the root nodes when unset.

        The server does not sort the result; use
        :func:`~workflowy.models.sort_by_priority` for display order.
        """
        data = self._transport.request("GET", list_path(parent_id), cancel=cancel)
        return _nodes(data)

    def create(self, data: NodeCreate, *, cancel: CancelToken | None = None) -> str:
        """Create a node and return its new ID.

        Raises
        ------
        WorkflowyValidationError
            If ``data.name`` is empty.
        WorkflowyContractError
            If the server answers without an ``item_id``.
        """
        _check_create(data)
        resp = self._transport.request("POST", "/nodes", json=data.to_payload(), cancel=cancel)
        return _created_id(resp)

    def update(self, node_id: str, data: NodeUpdate, *, cancel: CancelToken | None = None) -> None:
        """Update the fields set on *data*; unset fields keep their values."""
        _require_id(node_id)
        resp = self._transport.request(
            "POST", node_path(node_id), json=data.to_payload(), cancel=cancel,
        )
        _check_status(resp, "update")

    def move(self, node_id: str, data: NodeMove, *, cancel: CancelToken | None = None) -> None:
        """Move a node under another node or a target key."""
        _check_move(node_id, data)
        resp = self._transport.request(
            "POST", node_path(node_id, "move"), json=data.to_payload(), cancel=cancel,
        )
        _check_status(resp, "move")

    def delete(self, node_id: str, *, cancel: CancelToken | None = None) -> None:
        """Delete a node (and its subtree)."""
        _require_id(node_id)
        self._transport.request("DELETE", node_path(node_id), decode=False, cancel=cancel)

    def complete(self, node_id: str, *, cancel: CancelToken | None = None) -> None:
        """Mark a node as completed."""
        _require_id(node_id)
        resp = self._transport.request("POST", node_path(node_id, "complete"), cancel=cancel)
        _check_status(resp, "complete")

    def uncomplete(self, node_id: str, *, cancel: CancelToken | None = None) -> None:
        """Mark a node as not completed."""
        _require_id(node_id)
        resp = self._transport.request("POST", node_path(node_id, "uncomplete"), cancel=cancel)
        _check_status(resp, "uncomplete")

    def export_all(self, *, cancel: CancelToken | None = None) -> list[Node]:
        """Return every node of the account as a flat, unordered list.

        The API allows this call once per minute.
        """
        data = self._transport.request("GET", "/nodes-export", cancel=cancel)
        return _nodes(data)


class AsyncNodeAPI:
    """Asynchronous wrapper for the Workflowy Nodes API.

    Mirrors :class:`NodeAPI` but all methods are coroutines.
    """

    def __init__(self, transport: AsyncWorkflowyTransport) -> None:
        self._transport = transport

    async def get(self, node_id: str) -> Node:
        """Fetch a single node by its ID (async)."""
        _require_id(node_id)
        data = await self._transport.request("GET", node_path(node_id))
        return Node.from_dict((data or {}).get("node"))

    async def list(self, parent_id: str | None = None) -> list[Node]:
        """Return the children of *parent_id*, or the root nodes (async)."""
        return _nodes(await self._transport.request("GET", list_path(parent_id)))

    async def create(self, data: NodeCreate) -> str:
        """Create a node and return its new ID (async)."""
        _check_create(data)
        resp = await self._transport.request("POST", "/nodes", json=data.to_payload())
        return _created_id(resp)

    async def update(self, node_id: str, data: NodeUpdate) -> None:
        _require_id(node_id)
        resp = await self._transport.request("POST", node_path(node_id), json=data.to_payload())
        _check_status(resp, "update")

    async def move(self, node_id: str, data: NodeMove) -> None:
        _check_move(node_id, data)
        resp = await self._transport.request(
            "POST", node_path(node_id, "move"), json=data.to_payload(),
        )
        _check_status(resp, "move")

    async def delete(self, node_id: str) -> None:
        _require_id(node_id)
        await self._transport.request("DELETE", node_path(node_id), decode=False)

    async def complete(self, node_id: str) -> None:
        _require_id(node_id)
        resp = await self._transport.request("POST", node_path(node_id, "complete"))
        _check_status(resp, "complete")

    async def uncomplete(self, node_id: str) -> None:
        _require_id(node_id)
        resp = await self._transport.request("POST", node_path(node_id, "uncomplete"))
        _check_status(resp, "uncomplete")

    async def export_all(self) -> list[Node]:
        """Return every node as a flat list (async).  Limited to once per minute."""
        return _nodes(await self._transport.request("GET", "/nodes-export"))
