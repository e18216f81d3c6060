"""Tests for workflowy/models.py"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

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

WIRE_NODE = {
    "id": "6ed4b9ca-256c-bf2e-bd70-d8754237b505",
    "name": "This is a test outline for API examples",
    "note": None,
    "priority": 200,
    "data": {"layoutMode": "bullets"},
    "createdAt": 1753120779,
    "modifiedAt": 1753120850,
    "completedAt": None,
    "completed": False,
}


class TestNode:
    def test_from_dict(self):
        node = Node.from_dict(WIRE_NODE)
        assert node.id == WIRE_NODE["id"]
        assert node.name == WIRE_NODE["name"]
        assert node.note is None
        assert node.priority == 200
        assert node.layout_mode == "bullets"
        assert node.completed is False
        assert node.created_at == 1753120779
        assert node.modified_at == 1753120850
        assert node.completed_at is None

    def test_from_empty_payload(self):
        node = Node.from_dict(None)
        assert node == Node()

    def test_missing_data_object(self):
        assert Node.from_dict({"id": "x"}).layout_mode == ""

    def test_unknown_layout_mode_is_kept(self):
        node = Node.from_dict({"id": "x", "data": {"layoutMode": "kanban-v2"}})
        assert node.layout_mode == "kanban-v2"
        assert LayoutMode.parse(node.layout_mode) == "kanban-v2"

    def test_to_dict_omits_unset_optionals(self):
        out = Node.from_dict(WIRE_NODE).to_dict()
        assert "note" not in out
        assert "completedAt" not in out
        assert out["data"] == {"layoutMode": "bullets"}

    def test_to_dict_completed(self):
        node = Node(id="a", name="done", completed=True, completed_at=1753120900, note="")
        out = node.to_dict()
        assert out["completedAt"] == 1753120900
        assert out["note"] == ""

    def test_datetimes(self):
        node = Node.from_dict(WIRE_NODE)
        assert node.created_datetime == datetime.fromtimestamp(1753120779, tz=timezone.utc)
        assert node.completed_datetime is None
        assert Node().modified_datetime is None

    @given(
        st.builds(
            Node,
            id=st.text(min_size=1),
            name=st.text(),
            note=st.none() | st.text(),
            priority=st.integers(min_value=-(2**31), max_value=2**31),
            layout_mode=st.sampled_from([m.value for m in LayoutMode]),
            completed=st.booleans(),
            created_at=st.integers(min_value=1, max_value=2**32),
            modified_at=st.integers(min_value=1, max_value=2**32),
            completed_at=st.none() | st.integers(min_value=1, max_value=2**32),
        )
    )
    def test_wire_form_is_stable(self, node):
        assert Node.from_dict(node.to_dict()) == node


class TestLayoutMode:
    @pytest.mark.parametrize(
        ("raw", "member"),
        [
            ("bullets", LayoutMode.BULLETS),
            ("todo", LayoutMode.TODO),
            ("h1", LayoutMode.H1),
            ("p", LayoutMode.PARAGRAPH),
            ("quote-block", LayoutMode.QUOTE),
            ("code-block", LayoutMode.CODE),
            ("board", LayoutMode.BOARD),
        ],
    )
    def test_parse_known(self, raw, member):
        assert LayoutMode.parse(raw) is member

    def test_str_enum_compares_to_wire(self):
        assert LayoutMode.H2 == "h2"


class TestTarget:
    def test_system_target_without_name(self):
        target = Target.from_dict({"key": "inbox", "type": "system", "name": None})
        assert target.is_system
        assert target.name is None

    def test_shortcut(self):
        target = Target.from_dict({"key": "home", "type": "shortcut", "name": "Home"})
        assert not target.is_system
        assert target.type == TargetType.SHORTCUT


class TestInputs:
    def test_create_minimal(self):
        assert NodeCreate(name="x").to_payload() == {"name": "x"}

    def test_create_full(self):
        payload = NodeCreate(
            name="x",
            parent_id="inbox",
            note="n",
            layout_mode=LayoutMode.TODO,
            position=Position.BOTTOM,
        ).to_payload()
        assert payload == {
            "parent_id": "inbox",
            "name": "x",
            "note": "n",
            "layoutMode": "todo",
            "position": "bottom",
        }

    def test_create_empty_parent_means_root(self):
        assert "parent_id" not in NodeCreate(name="x", parent_id="").to_payload()

    def test_create_raw_layout_string(self):
        assert NodeCreate(name="x", layout_mode="custom").to_payload()["layoutMode"] == "custom"

    def test_update_empty(self):
        assert NodeUpdate().to_payload() == {}

    def test_update_empty_note_is_sent(self):
        assert NodeUpdate(note="").to_payload() == {"note": ""}

    def test_move_default_position_omitted(self):
        assert NodeMove(parent_id="p").to_payload() == {"parent_id": "p"}

    def test_move_with_position(self):
        assert NodeMove(parent_id="p", position=Position.TOP).to_payload() == {
            "parent_id": "p",
            "position": "top",
        }


class TestSortByPriority:
    def test_orders_ascending(self):
        nodes = [Node(id="b", priority=5), Node(id="a", priority=1), Node(id="c", priority=9)]
        assert [n.id for n in sort_by_priority(nodes)] == ["a", "b", "c"]

    def test_stable_for_ties(self):
        nodes = [Node(id="x", priority=1), Node(id="y", priority=1), Node(id="z", priority=0)]
        assert [n.id for n in sort_by_priority(nodes)] == ["z", "x", "y"]

    def test_does_not_mutate_input(self):
        nodes = [Node(id="b", priority=2), Node(id="a", priority=1)]
        sort_by_priority(nodes)
        assert [n.id for n in nodes] == ["b", "a"]
