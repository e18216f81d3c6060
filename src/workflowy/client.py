"""Synchronous Workflowy client.

:class:`WorkflowyClient` is the entry point of the library.  It owns a
:class:`~workflowy.api.transport.WorkflowyTransport` and exposes one method
per API action.  A single instance is safe to share between threads; every
call carries its own retry bookkeeping.

Usage::

    from workflowy import Position, WorkflowyClient

    with WorkflowyClient(api_key="...") as client:
        node_id = client.create_node(name="Groceries", position=Position.BOTTOM)
        client.create_node(name="Milk", parent_id=node_id)
        for child in client.list_nodes(node_id):
            print(child.name)
"""

from __future__ import annotations

from typing import Any

import httpx

from workflowy.api.nodes import NodeAPI
from workflowy.api.retries import Clock
from workflowy.api.targets import TargetAPI
from workflowy.api.transport import WorkflowyTransport
from workflowy.cancel import CancelToken
from workflowy.config import WorkflowyConfig
from workflowy.models import (
    LayoutMode,
    Node,
    NodeCreate,
    NodeMove,
    NodeUpdate,
    Position,
    Target,
)


class WorkflowyClient:
    """Synchronous Workflowy API client.

    Parameters
    ----------
    api_key:
        Workflowy API key.  **Required.**
    http_client:
        Optional ``httpx.Client`` to send requests with.  Defaults to a
        client with a 15 second timeout.
    clock:
        Optional :class:`~workflowy.api.retries.Clock` (mainly for tests).
    **kwargs:
        All remaining keyword arguments are forwarded to
        :class:`WorkflowyConfig`.
    """

    def __init__(
        self,
        api_key: str,
        *,
        http_client: httpx.Client | None = None,
        clock: Clock | None = None,
        **kwargs: Any,
    ) -> None:
        self._config = WorkflowyConfig(api_key=api_key, **kwargs)
        self._transport = WorkflowyTransport(self._config, http_client=http_client, clock=clock)
        self._nodes = NodeAPI(self._transport)
        self._targets = TargetAPI(self._transport)

    @classmethod
    def from_env(cls, **kwargs: Any) -> WorkflowyClient:
        """Create a client from ``WORKFLOWY_API_KEY`` / ``WORKFLOWY_BASE_URL``."""
        config = WorkflowyConfig.from_env()
        kwargs.setdefault("base_url", config.base_url)
        return cls(config.api_key, **kwargs)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def base_url(self) -> str:
        return self._transport.base_url

    @property
    def http_client(self) -> httpx.Client:
        return self._transport.http_client

    def set_base_url(self, base_url: str) -> None:
        """Change the API root.  An empty value restores the default.

        Raises ``ValueError`` for a plain ``http`` URL whose host is not
        localhost, leaving the current root in place.
        """
        self._transport.set_base_url(base_url)

    def set_http_client(self, http_client: httpx.Client | None) -> None:
        """Send future requests through *http_client*.  ``None`` is ignored."""
        self._transport.set_http_client(http_client)

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def get_node(self, node_id: str, *, cancel: CancelToken | None = None) -> Node:
        """Fetch a single node by ID."""
        return self._nodes.get(node_id, cancel=cancel)

    def list_nodes(
        self,
        parent_id: str | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> list[Node]:
        """List the children of *parent_id* (root nodes when unset), unordered."""
        return self._nodes.list(parent_id, cancel=cancel)

    def create_node(
        self,
        data: NodeCreate | None = None,
        *,
        name: str = "",
        parent_id: str | None = None,
        note: str | None = None,
        layout_mode: LayoutMode | str | None = None,
        position: Position | None = None,
        cancel: CancelToken | None = None,
    ) -> str:
        """Create a node and return its ID.

        Pass either a :class:`NodeCreate` or the individual fields as
        keyword arguments.
        """
        if data is None:
            data = NodeCreate(
                name=name,
                parent_id=parent_id,
                note=note,
                layout_mode=layout_mode,
                position=position,
            )
        return self._nodes.create(data, cancel=cancel)

    def update_node(
        self,
        node_id: str,
        data: NodeUpdate | None = None,
        *,
        name: str | None = None,
        note: str | None = None,
        layout_mode: LayoutMode | str | None = None,
        cancel: CancelToken | None = None,
    ) -> None:
        """Update a node.  Fields left as ``None`` are not changed."""
        if data is None:
            data = NodeUpdate(name=name, note=note, layout_mode=layout_mode)
        self._nodes.update(node_id, data, cancel=cancel)

    def move_node(
        self,
        node_id: str,
        parent_id: str,
        position: Position | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> None:
        """Move a node under *parent_id* (a node ID or a target key)."""
        self._nodes.move(node_id, NodeMove(parent_id=parent_id, position=position), cancel=cancel)

    def delete_node(self, node_id: str, *, cancel: CancelToken | None = None) -> None:
        self._nodes.delete(node_id, cancel=cancel)

    def complete_node(self, node_id: str, *, cancel: CancelToken | None = None) -> None:
        self._nodes.complete(node_id, cancel=cancel)

    def uncomplete_node(self, node_id: str, *, cancel: CancelToken | None = None) -> None:
        self._nodes.uncomplete(node_id, cancel=cancel)

    def export_all(self, *, cancel: CancelToken | None = None) -> list[Node]:
        """Return every node as a flat list.  Allowed once per minute."""
        return self._nodes.export_all(cancel=cancel)

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    def list_targets(self, *, cancel: CancelToken | None = None) -> list[Target]:
        return self._targets.list(cancel=cancel)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the HTTP client if the client created it."""
        self._transport.close()

    def __enter__(self) -> WorkflowyClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
