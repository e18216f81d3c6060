"""Asynchronous Workflowy client.

:class:`AsyncWorkflowyClient` mirrors :class:`WorkflowyClient` but every I/O
method is a coroutine.  Cancellation and deadlines use plain asyncio::

    import asyncio
    from workflowy import AsyncWorkflowyClient

    async def main():
        async with AsyncWorkflowyClient(api_key="...") as client:
            nodes = await asyncio.wait_for(client.list_nodes(), timeout=30)
            print(len(nodes))

    asyncio.run(main())
"""

from __future__ import annotations

from typing import Any

import httpx

from workflowy.api.nodes import AsyncNodeAPI
from workflowy.api.retries import Clock
from workflowy.api.targets import AsyncTargetAPI
from workflowy.api.transport import AsyncWorkflowyTransport
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


class AsyncWorkflowyClient:
    """Asynchronous Workflowy API client.

    Parameters
    ----------
    api_key:
        Workflowy API key.  **Required.**
    http_client:
        Optional ``httpx.AsyncClient``.
    clock:
        Optional :class:`~workflowy.api.retries.Clock`.
    **kwargs:
        Forwarded to :class:`WorkflowyConfig`.
    """

    def __init__(
        self,
        api_key: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        clock: Clock | None = None,
        **kwargs: Any,
    ) -> None:
        self._config = WorkflowyConfig(api_key=api_key, **kwargs)
        self._transport = AsyncWorkflowyTransport(
            self._config, http_client=http_client, clock=clock,
        )
        self._nodes = AsyncNodeAPI(self._transport)
        self._targets = AsyncTargetAPI(self._transport)

    @classmethod
    def from_env(cls, **kwargs: Any) -> AsyncWorkflowyClient:
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
    def http_client(self) -> httpx.AsyncClient:
        return self._transport.http_client

    def set_base_url(self, base_url: str) -> None:
        """Change the API root.  Raises ``ValueError`` for non-local ``http``."""
        self._transport.set_base_url(base_url)

    def set_http_client(self, http_client: httpx.AsyncClient | None) -> None:
        self._transport.set_http_client(http_client)

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    async def get_node(self, node_id: str) -> Node:
        return await self._nodes.get(node_id)

    async def list_nodes(self, parent_id: str | None = None) -> list[Node]:
        return await self._nodes.list(parent_id)

    async def create_node(
        self,
        data: NodeCreate | None = None,
        *,
        name: str = "",
        parent_id: str | None = None,
        note: str | None = None,
        layout_mode: LayoutMode | str | None = None,
        position: Position | None = None,
    ) -> str:
        """Create a node and return its ID (async).

        See :meth:`WorkflowyClient.create_node`.
        """
        if data is None:
            data = NodeCreate(
                name=name,
                parent_id=parent_id,
                note=note,
                layout_mode=layout_mode,
                position=position,
            )
        return await self._nodes.create(data)

    async def update_node(
        self,
        node_id: str,
        data: NodeUpdate | None = None,
        *,
        name: str | None = None,
        note: str | None = None,
        layout_mode: LayoutMode | str | None = None,
    ) -> None:
        if data is None:
            data = NodeUpdate(name=name, note=note, layout_mode=layout_mode)
        await self._nodes.update(node_id, data)

    async def move_node(
        self,
        node_id: str,
        parent_id: str,
        position: Position | None = None,
    ) -> None:
        await self._nodes.move(node_id, NodeMove(parent_id=parent_id, position=position))

    async def delete_node(self, node_id: str) -> None:
        await self._nodes.delete(node_id)

    async def complete_node(self, node_id: str) -> None:
        await self._nodes.complete(node_id)

    async def uncomplete_node(self, node_id: str) -> None:
        await self._nodes.uncomplete(node_id)

    async def export_all(self) -> list[Node]:
        return await self._nodes.export_all()

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    async def list_targets(self) -> list[Target]:
        return await self._targets.list()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> AsyncWorkflowyClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
