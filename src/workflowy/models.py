"""Public data models for the workflowy client.

Every type here is a plain value: the client keeps no state about nodes or
targets between calls, and every read is a live fetch.  Wire field names
(``createdAt``, ``layoutMode``, ...) are translated to snake_case attributes
by the ``from_dict`` constructors and back by ``to_dict`` / ``to_payload``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class LayoutMode(str, Enum):
    """How a node's content is rendered.

    The server may send modes that are not listed here.  Such values are
    kept as plain strings on :attr:`Node.layout_mode` and sent back
    unchanged; use :meth:`parse` to get a member when one exists.
    """

    # Documented in the API reference.
    BULLETS = "bullets"
    TODO = "todo"
    H1 = "h1"
    H2 = "h2"
    H3 = "h3"

    # Observed in API responses.
    PARAGRAPH = "p"
    QUOTE = "quote-block"
    BOARD = "board"
    DASHBOARD = "dashboard"
    CODE = "code-block"
    DIVIDER = "divider"

    @classmethod
    def parse(cls, value: str) -> LayoutMode | str:
        """Return the matching member, or *value* itself if it is unknown."""
        try:
            return cls(value)
        except ValueError:
            return value


class Position(str, Enum):
    """Placement of a node among its siblings.  Input only."""

    TOP = "top"
    BOTTOM = "bottom"


class TargetType(str, Enum):
    """Kind of a :class:`Target`."""

    SHORTCUT = "shortcut"
    """User-defined shortcut."""

    SYSTEM = "system"
    """System-managed location such as the inbox.  Listed even when the
    backing node has not been created yet."""


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _from_timestamp(value: int | None) -> datetime | None:
    # UNIX seconds on the wire; 0 means unset.
    if not value:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------

@dataclass
class Node:
    """A Workflowy node (outline item).

    Attributes
    ----------
    id:
        Server-assigned opaque identifier.
    name:
        Main content of the node.
    note:
        Optional subtext.
    priority:
        Sort key among siblings; lower means higher in the list.  Not
        guaranteed to be unique or contiguous.
    layout_mode:
        Raw layout mode string (``data.layoutMode`` on the wire).
    completed:
        Completion flag.
    created_at, modified_at:
        UNIX timestamps.
    completed_at:
        UNIX timestamp, ``None`` exactly when *completed* is false.
    """

    id: str = ""
    name: str = ""
    note: str | None = None
    priority: int = 0
    layout_mode: str = ""
    completed: bool = False
    created_at: int = 0
    modified_at: int = 0
    completed_at: int | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any] | None) -> Node:
        payload = payload or {}
        data = payload.get("data") or {}
        return cls(
            id=payload.get("id") or "",
            name=payload.get("name") or "",
            note=payload.get("note"),
            priority=payload.get("priority") or 0,
            layout_mode=data.get("layoutMode") or "",
            completed=bool(payload.get("completed", False)),
            created_at=payload.get("createdAt") or 0,
            modified_at=payload.get("modifiedAt") or 0,
            completed_at=payload.get("completedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the wire representation of the node."""
        out: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "priority": self.priority,
            "data": {"layoutMode": self.layout_mode},
            "completed": self.completed,
            "createdAt": self.created_at,
            "modifiedAt": self.modified_at,
        }
        if self.note is not None:
            out["note"] = self.note
        if self.completed_at is not None:
            out["completedAt"] = self.completed_at
        return out

    @property
    def created_datetime(self) -> datetime | None:
        return _from_timestamp(self.created_at)

    @property
    def modified_datetime(self) -> datetime | None:
        return _from_timestamp(self.modified_at)

    @property
    def completed_datetime(self) -> datetime | None:
        return _from_timestamp(self.completed_at)


@dataclass
class Target:
    """A named insertion point (shortcut or system location).

    A system target's key is a reservation: the node behind it may not
    exist yet.
    """

    key: str = ""
    type: str = ""
    name: str | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any] | None) -> Target:
        payload = payload or {}
        return cls(
            key=payload.get("key") or "",
            type=payload.get("type") or "",
            name=payload.get("name"),
        )

    @property
    def is_system(self) -> bool:
        return self.type == TargetType.SYSTEM.value


# ---------------------------------------------------------------------------
# Operation inputs
# ---------------------------------------------------------------------------

@dataclass
class NodeCreate:
    """Input of :meth:`NodeAPI.create`.

    Leave *parent_id* unset to create the node at the root level.  Unset
    optional fields are omitted from the request.
    """

    name: str
    parent_id: str | None = None
    note: str | None = None
    layout_mode: LayoutMode | str | None = None
    position: Position | None = None

    def to_payload(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.parent_id:
            body["parent_id"] = self.parent_id
        body["name"] = self.name
        if self.note is not None:
            body["note"] = self.note
        if self.layout_mode is not None:
            body["layoutMode"] = _enum_value(self.layout_mode)
        if self.position is not None:
            body["position"] = _enum_value(self.position)
        return body


@dataclass
class NodeUpdate:
    """Input of :meth:`NodeAPI.update`.  Unset fields are left untouched."""

    name: str | None = None
    note: str | None = None
    layout_mode: LayoutMode | str | None = None

    def to_payload(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.name is not None:
            body["name"] = self.name
        if self.note is not None:
            body["note"] = self.note
        if self.layout_mode is not None:
            body["layoutMode"] = _enum_value(self.layout_mode)
        return body


@dataclass
class NodeMove:
    """Input of :meth:`NodeAPI.move`.

    *parent_id* is a node id or a target key.  The server places the node
    at the top when *position* is unset.
    """

    parent_id: str
    position: Position | None = None

    def to_payload(self) -> dict[str, Any]:
        body: dict[str, Any] = {"parent_id": self.parent_id}
        if self.position is not None:
            body["position"] = _enum_value(self.position)
        return body


def sort_by_priority(nodes: list[Node]) -> list[Node]:
    """Return *nodes* ordered as displayed (ascending priority, stable)."""
    return sorted(nodes, key=lambda n: n.priority)
