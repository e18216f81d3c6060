"""Shared test fixtures for the workflowy test suite."""

from __future__ import annotations

import json
import threading
import time
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest

from workflowy.api.retries import WaitOutcome
from workflowy.cancel import CancelToken
from workflowy.config import WorkflowyConfig

EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    """Clock that never really sleeps.

    Every requested wait is recorded in :attr:`sleeps` and advances
    :attr:`current`.  *on_sleep* runs at the start of each wait, which lets
    a test cancel a token "while" the transport is waiting.
    """

    def __init__(self, now: datetime = EPOCH) -> None:
        self.current = now
        self.sleeps: list[float] = []
        self.on_sleep: Callable[[], None] | None = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        return self.current

    def sleep(self, seconds: float, cancel: CancelToken | None = None) -> WaitOutcome:
        with self._lock:
            self.sleeps.append(seconds)
            self.current += timedelta(seconds=seconds)
        if self.on_sleep is not None:
            self.on_sleep()
        if cancel is not None and cancel.done:
            return WaitOutcome.CANCELLED
        return WaitOutcome.ELAPSED

    async def asleep(self, seconds: float) -> None:
        with self._lock:
            self.sleeps.append(seconds)
            self.current += timedelta(seconds=seconds)


class FakeWorkflowyServer:
    """In-memory stand-in for the Workflowy API, served via ``httpx.MockTransport``.

    Implements the node and target endpoints closely enough to run the
    create/get/list/update/complete/move/delete scenarios offline.
    """

    prefix = "/api/v1"

    def __init__(self) -> None:
        self.nodes: dict[str, dict[str, Any]] = {}
        self.parents: dict[str, str | None] = {}
        self.requests: list[httpx.Request] = []
        self.targets = [
            {"key": "inbox", "type": "system", "name": None},
            {"key": "today", "type": "shortcut", "name": "Today"},
        ]
        self._lock = threading.Lock()

    # -- helpers -----------------------------------------------------------

    @staticmethod
    def _json(status: int, payload: Any) -> httpx.Response:
        return httpx.Response(status, json=payload)

    def _not_found(self) -> httpx.Response:
        return self._json(404, {"message": "Node not found"})

    def _children(self, parent_id: str | None) -> list[dict[str, Any]]:
        return [self.nodes[nid] for nid, pid in self.parents.items() if pid == parent_id]

    def _place(self, node: dict[str, Any], parent_id: str | None, position: str) -> None:
        siblings = [n["priority"] for n in self._children(parent_id) if n is not node]
        if not siblings:
            node["priority"] = 0
        elif position == "bottom":
            node["priority"] = max(siblings) + 1
        else:
            node["priority"] = min(siblings) - 1
        self.parents[node["id"]] = parent_id

    def _delete(self, node_id: str) -> None:
        for child in self._children(node_id):
            self._delete(child["id"])
        self.nodes.pop(node_id, None)
        self.parents.pop(node_id, None)

    # -- dispatch ----------------------------------------------------------

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
            return self._dispatch(request)

    def _dispatch(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if not path.startswith(self.prefix):
            return self._json(404, {"error": "unknown endpoint"})
        parts = [p for p in path[len(self.prefix):].split("/") if p]
        body = json.loads(request.content) if request.content else {}
        now = int(time.time())

        if parts == ["targets"] and request.method == "GET":
            return self._json(200, {"targets": self.targets})

        if parts == ["nodes-export"] and request.method == "GET":
            exported = [
                dict(node, parent_id=self.parents[nid]) for nid, node in self.nodes.items()
            ]
            return self._json(200, {"nodes": exported})

        if parts == ["nodes"]:
            if request.method == "GET":
                parent_id = request.url.params.get("parent_id") or None
                return self._json(200, {"nodes": self._children(parent_id)})
            if request.method == "POST":
                node_id = str(uuid.uuid4())
                node = {
                    "id": node_id,
                    "name": body["name"],
                    "note": body.get("note"),
                    "priority": 0,
                    "data": {"layoutMode": body.get("layoutMode", "bullets")},
                    "completed": False,
                    "createdAt": now,
                    "modifiedAt": now,
                }
                parent_id = body.get("parent_id")
                if parent_id is not None and parent_id not in self.nodes:
                    return self._not_found()
                self.nodes[node_id] = node
                self._place(node, parent_id, body.get("position", "top"))
                return self._json(200, {"item_id": node_id})

        if len(parts) >= 2 and parts[0] == "nodes":
            node = self.nodes.get(parts[1])
            if node is None:
                return self._not_found()
            action = parts[2] if len(parts) > 2 else ""

            if not action and request.method == "GET":
                return self._json(200, {"node": node})
            if not action and request.method == "DELETE":
                self._delete(node["id"])
                return self._json(200, {"status": "ok"})
            if not action and request.method == "POST":
                for wire in ("name", "note"):
                    if wire in body:
                        node[wire] = body[wire]
                if "layoutMode" in body:
                    node["data"]["layoutMode"] = body["layoutMode"]
                node["modifiedAt"] = now
                return self._json(200, {"status": "ok"})
            if action == "move" and request.method == "POST":
                parent_id = body["parent_id"]
                if parent_id not in self.nodes:
                    return self._not_found()
                self._place(node, parent_id, body.get("position", "top"))
                return self._json(200, {"status": "ok"})
            if action == "complete" and request.method == "POST":
                node["completed"] = True
                node["completedAt"] = now
                return self._json(200, {"status": "ok"})
            if action == "uncomplete" and request.method == "POST":
                node["completed"] = False
                node.pop("completedAt", None)
                return self._json(200, {"status": "ok"})

        return self._json(405, {"error": "method not allowed"})



class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []
        self.gauges: list[dict[str, Any]] = []

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.gauges.append({"name": name, "value": value, "tags": tags})

    def count(self, name: str) -> int:
        return sum(1 for c in self.increments if c["name"] == name)

    def names(self) -> set[str]:
        return {m["name"] for m in self.increments + self.timings + self.gauges}


@pytest.fixture
def config() -> WorkflowyConfig:
    """Default test configuration with a dummy key."""
    return WorkflowyConfig(api_key="test-key-1234")


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_server() -> FakeWorkflowyServer:
    return FakeWorkflowyServer()


@pytest.fixture
def metrics_hook() -> RecordingMetricsHook:
    return RecordingMetricsHook()
