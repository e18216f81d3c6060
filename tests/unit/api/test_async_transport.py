"""Unit tests for AsyncWorkflowyTransport.

Mirrors the sync suite for the retry protocol and adds asyncio
cancellation (task.cancel / wait_for) during the rate-limit wait.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from workflowy.api.transport import AsyncWorkflowyTransport
from workflowy.config import WorkflowyConfig
from workflowy.errors import (
    WorkflowyAPIError,
    WorkflowyNetworkError,
    WorkflowyNotFoundError,
    WorkflowyRateLimitError,
)


class AsyncTrackingStream(httpx.AsyncByteStream):
    def __init__(self, content: bytes = b"") -> None:
        self.content = content
        self.closed = False

    async def __aiter__(self):
        yield self.content

    async def aclose(self) -> None:
        self.closed = True


def make_transport(handler, clock=None, **overrides) -> AsyncWorkflowyTransport:
    config = WorkflowyConfig(api_key="test-key-1234", **overrides)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AsyncWorkflowyTransport(config, http_client=client, clock=clock)


def sequence(*responses):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        template = responses[min(len(requests), len(responses)) - 1]
        return httpx.Response(
            template.status_code, headers=template.headers, content=template.content,
        )

    return handler, requests


class TestAsyncRequests:
    @pytest.mark.asyncio
    async def test_success(self, fake_clock):
        handler, requests = sequence(httpx.Response(200, json={"nodes": []}))
        transport = make_transport(handler, fake_clock)
        assert await transport.request("GET", "/nodes") == {"nodes": []}
        assert requests[0].headers["authorization"] == "Bearer test-key-1234"

    @pytest.mark.asyncio
    async def test_error_status(self, fake_clock):
        handler, _ = sequence(httpx.Response(404, json={"message": "Node not found"}))
        transport = make_transport(handler, fake_clock)
        with pytest.raises(WorkflowyNotFoundError, match=r"\(404\): Node not found"):
            await transport.request("GET", "/nodes/missing")

    @pytest.mark.asyncio
    async def test_decode_false(self, fake_clock):
        handler, _ = sequence(httpx.Response(200, json={"status": "ok"}))
        transport = make_transport(handler, fake_clock)
        assert await transport.request("DELETE", "/nodes/a", decode=False) is None

    @pytest.mark.asyncio
    async def test_network_error(self, fake_clock):
        def handler(request):
            raise httpx.ConnectError("refused")

        transport = make_transport(handler, fake_clock)
        with pytest.raises(WorkflowyNetworkError):
            await transport.request("GET", "/nodes")

    @pytest.mark.asyncio
    async def test_malformed_json_propagates(self, fake_clock):
        handler, _ = sequence(httpx.Response(200, content=b"<html>"))
        transport = make_transport(handler, fake_clock)
        with pytest.raises(json.JSONDecodeError):
            await transport.request("GET", "/nodes")

    @pytest.mark.asyncio
    async def test_response_closed_on_error(self, fake_clock):
        stream = AsyncTrackingStream(b'{"error": "boom"}')
        transport = make_transport(
            lambda request: httpx.Response(500, stream=stream), fake_clock,
        )
        with pytest.raises(WorkflowyAPIError, match="boom"):
            await transport.request("GET", "/nodes")
        assert stream.closed


class TestAsyncRateLimit:
    @pytest.mark.asyncio
    async def test_four_attempts_then_error(self, fake_clock):
        handler, requests = sequence(httpx.Response(429, headers={"Retry-After": "1"}))
        transport = make_transport(handler, fake_clock)
        with pytest.raises(WorkflowyRateLimitError) as exc_info:
            await transport.request("GET", "/nodes")
        assert len(requests) == 4
        assert fake_clock.sleeps == [1.0, 1.0, 1.0]
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_zero_retry_after_single_attempt(self, fake_clock):
        handler, requests = sequence(httpx.Response(429, headers={"Retry-After": "0"}))
        transport = make_transport(handler, fake_clock)
        with pytest.raises(WorkflowyRateLimitError):
            await transport.request("GET", "/nodes")
        assert len(requests) == 1
        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_replays_body(self, fake_clock):
        handler, requests = sequence(
            httpx.Response(429, headers={"Retry-After": "1"}),
            httpx.Response(200, json={"item_id": "n1"}),
        )
        transport = make_transport(handler, fake_clock)
        result = await transport.request("POST", "/nodes", {"name": "<i>x</i> & y"})
        assert result == {"item_id": "n1"}
        assert requests[0].content == requests[1].content == b'{"name":"<i>x</i> & y"}'

    @pytest.mark.asyncio
    async def test_wait_for_cancels_during_wait(self):
        handler, requests = sequence(httpx.Response(429, headers={"Retry-After": "30"}))
        transport = make_transport(handler)
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(transport.request("GET", "/nodes"), timeout=0.05)
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_task_cancel_wins_over_429(self):
        handler, requests = sequence(httpx.Response(429, headers={"Retry-After": "30"}))
        transport = make_transport(handler)
        task = asyncio.create_task(transport.request("GET", "/nodes"))
        while not requests:
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(requests) == 1


class TestAsyncClientLifecycle:
    @pytest.mark.asyncio
    async def test_replaced_owned_client_closed_on_close(self):
        transport = AsyncWorkflowyTransport(WorkflowyConfig(api_key="k"))
        owned = transport.http_client
        custom = httpx.AsyncClient(timeout=42.0)
        transport.set_http_client(custom)
        assert transport.http_client.timeout.read == 42.0
        await transport.close()
        assert owned.is_closed
        assert not custom.is_closed
        await custom.aclose()

    @pytest.mark.asyncio
    async def test_set_http_client_none_is_noop(self):
        async with AsyncWorkflowyTransport(WorkflowyConfig(api_key="k")) as transport:
            before = transport.http_client
            transport.set_http_client(None)
            assert transport.http_client is before
        assert before.is_closed

    @pytest.mark.asyncio
    async def test_set_base_url(self, fake_clock):
        handler, requests = sequence(httpx.Response(200, json={"targets": []}))
        transport = make_transport(handler, fake_clock)
        transport.set_base_url("https://example.org/api/")
        await transport.request("GET", "/targets")
        assert str(requests[0].url) == "https://example.org/api/targets"
