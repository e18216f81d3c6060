"""Sync and async HTTP transports for the Workflowy API.

Each transport turns one logical operation into exactly one successful
exchange, or raises a classified error:

1. Build the request: bearer auth, JSON headers, compact JSON body captured
   as bytes (:class:`PreparedRequest`).
2. Send it over the configured ``httpx`` client.
3. On a transport failure -- raise :class:`WorkflowyNetworkError` at once.
4. On ``429`` -- parse ``Retry-After``, wait (cancellable) and replay the
   identical bytes, at most ``rate_limit_max_retries`` times.
5. On any other non-2xx -- raise the :class:`WorkflowyAPIError` subclass for
   the status, carrying the server's ``message`` / ``error`` text.
6. On ``2xx`` -- return the decoded JSON, or ``None`` when the caller asked
   for no output.

The response is closed on every path.
"""

from __future__ import annotations

import dataclasses
import json as _json
import sys
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from workflowy.cancel import CancelToken
from workflowy.config import WorkflowyConfig
from workflowy.errors import (
    WorkflowyCancelledError,
    WorkflowyError,
    WorkflowyNetworkError,
    WorkflowyRateLimitError,
    WorkflowyRequestError,
    api_error_for_status,
)
from workflowy.observability import NoopMetricsHook, get_logger

from .retries import (
    Clock,
    SystemClock,
    WaitOutcome,
    parse_retry_after,
    should_retry_rate_limit,
    wait_before_retry,
)

log = get_logger("workflowy.transport")

JSON_CONTENT_TYPE = "application/json"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def join_url(base_url: str, path: str) -> str:
    """Join *path* to *base_url* with exactly one separating slash."""
    if path in ("", "/"):
        return base_url
    return base_url + "/" + path.lstrip("/")


def encode_body(body: Any) -> bytes:
    """Serialise *body* to compact UTF-8 JSON.

    Markup-like text (``<code>``, ``&``) is emitted verbatim, never escaped.
    """
    return _json.dumps(body, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def default_http_client(config: WorkflowyConfig) -> httpx.Client:
    """Create the ``httpx.Client`` a transport uses when none is supplied."""
    return httpx.Client(
        timeout=httpx.Timeout(config.timeout_seconds),
        proxy=config.http_proxy,
    )


def default_async_http_client(config: WorkflowyConfig) -> httpx.AsyncClient:
    """Async twin of :func:`default_http_client`."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.timeout_seconds),
        proxy=config.http_proxy,
    )


@dataclass(frozen=True)
class PreparedRequest:
    """A fully built request whose body can be replayed byte for byte.

    Attributes
    ----------
    method:
        Upper-case HTTP method.
    path:
        Path relative to the base URL, as passed by the caller.
    url:
        Absolute URL.
    headers:
        Headers sent with every attempt.
    body:
        Serialised JSON body, or ``None`` for body-less requests.
    """

    method: str
    path: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None

    def rewind(self, client: httpx.Client | httpx.AsyncClient) -> httpx.Request:
        """Return a fresh ``httpx.Request`` reading the captured body from the start."""
        return client.build_request(
            self.method,
            self.url,
            headers=self.headers,
            content=self.body,
        )


def _decode_error_body(raw: bytes) -> tuple[str, str]:
    """Best-effort extraction of ``message`` / ``error`` from an error body."""
    try:
        payload = _json.loads(raw)
    except ValueError:
        return "", ""
    if not isinstance(payload, dict):
        return "", ""
    message = payload.get("message")
    error_text = payload.get("error")
    return (
        message if isinstance(message, str) else "",
        error_text if isinstance(error_text, str) else "",
    )


def _raise_for_status(status: int, raw: bytes, method: str, path: str) -> None:
    """Raise the classified API error for a non-2xx, non-429 status."""
    message, error_text = _decode_error_body(raw)
    raise api_error_for_status(
        status,
        message,
        error_text,
        context={"method": method, "path": path},
    )


def _dump_payload(
    method: str,
    url: str,
    request_headers: dict[str, str],
    request_body: bytes | None,
    response_status: int | None,
    response_body: bytes | None,
    api_key: str | None = None,
) -> None:
    """Write a redacted debug dump of the request/response to stderr."""
    from workflowy.utils.redact import redact

    def _loads(raw: bytes) -> Any:
        try:
            return _json.loads(raw)
        except ValueError:
            return raw.decode("utf-8", errors="replace")[:1000]

    dump: dict[str, Any] = {
        "method": method,
        "url": url,
        "request_headers": dict(request_headers),
    }
    if request_body is not None:
        dump["request_body"] = _loads(request_body)
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = _loads(response_body)
    print(
        _json.dumps(redact(dump, api_key), indent=2, default=str),
        file=sys.stderr,
    )


# ---------------------------------------------------------------------------
# Shared state (used by both sync and async transports)
# ---------------------------------------------------------------------------

class _TransportBase:
    """Configuration, request construction and bookkeeping shared by both transports."""

    def __init__(self, config: WorkflowyConfig, clock: Clock | None = None) -> None:
        self._config = config
        self._clock: Clock = clock if clock is not None else SystemClock()
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    # -- configuration -----------------------------------------------------

    @property
    def config(self) -> WorkflowyConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.base_url

    def set_base_url(self, base_url: str) -> None:
        """Point the transport at *base_url*.  Empty resets to the default.

        The configuration is replaced as a whole, so requests already in
        flight keep the snapshot they started with.

        Raises
        ------
        ValueError
            If *base_url* uses plain ``http`` for a host other than
            localhost.  The current base URL is kept.
        """
        self._config = dataclasses.replace(self._config, base_url=base_url)

    # -- request construction ---------------------------------------------

    def prepare(
        self,
        method: str,
        path: str,
        json: Any = None,
        *,
        cancel: CancelToken | None = None,
    ) -> PreparedRequest:
        """Build an authenticated request for *path*.

        Parameters
        ----------
        method:
            HTTP method.
        path:
            Path relative to the base URL.  May already carry an encoded
            query string.
        json:
            Request body.  ``None`` means no body (and no ``Content-Type``).
        cancel:
            Optional token; a token that is already done fails the call
            before anything is built.

        Raises
        ------
        WorkflowyCancelledError
            If *cancel* is already cancelled or past its deadline.
        WorkflowyRequestError
            If *json* cannot be serialised.
        """
        if cancel is not None:
            cancel.raise_if_done()
        config = self._config
        method = method.upper()

        headers = {
            "Authorization": f"Bearer {config.api_key}",
            "Accept": JSON_CONTENT_TYPE,
            "User-Agent": config.user_agent,
        }
        body: bytes | None = None
        if json is not None:
            try:
                body = encode_body(json)
            except (TypeError, ValueError) as exc:
                raise WorkflowyRequestError(
                    message=f"Cannot encode request body for {method} {path}: {exc}",
                    context={"method": method, "path": path},
                    cause=exc,
                ) from exc
            headers["Content-Type"] = JSON_CONTENT_TYPE

        return PreparedRequest(
            method=method,
            path=path,
            url=join_url(config.base_url, path),
            headers=headers,
            body=body,
        )

    # -- bookkeeping -------------------------------------------------------

    def _record_response(self, prepared: PreparedRequest, status: int, started: float) -> None:
        elapsed_ms = (time.monotonic() - started) * 1000
        tags = {"method": prepared.method, "path": prepared.path, "status": str(status)}
        self._metrics.increment("workflowy.requests_total", tags=tags)
        self._metrics.timing("workflowy.request_duration_ms", elapsed_ms, tags=tags)
        log.debug(
            "Request completed",
            extra={
                "extra_fields": {
                    "op": "request",
                    "method": prepared.method,
                    "path": prepared.path,
                    "status_code": status,
                    "duration_ms": round(elapsed_ms, 2),
                }
            },
        )

    def _network_error(
        self,
        prepared: PreparedRequest,
        exc: Exception,
        attempt: int,
    ) -> WorkflowyNetworkError:
        self._metrics.increment(
            "workflowy.requests_total",
            tags={"method": prepared.method, "path": prepared.path, "status": "error"},
        )
        return WorkflowyNetworkError(
            message=f"Network error on {prepared.method} {prepared.path}: {exc}",
            context={"method": prepared.method, "path": prepared.path, "attempt": attempt + 1},
            cause=exc,
        )

    def _rate_limit_delay(self, prepared: PreparedRequest, response: httpx.Response) -> float:
        delay = parse_retry_after(response.headers.get("retry-after"), self._clock.now())
        tags = {"method": prepared.method, "path": prepared.path}
        self._metrics.increment("workflowy.rate_limited_total", tags=tags)
        self._metrics.gauge("workflowy.retry_after_seconds", delay, tags=tags)
        return delay

    def _rate_limit_error(
        self,
        prepared: PreparedRequest,
        delay: float,
        attempt: int,
    ) -> WorkflowyRateLimitError | None:
        """Return the error to raise when the 429 must not be retried."""
        if should_retry_rate_limit(delay, attempt, self._config.rate_limit_max_retries):
            log.warning(
                "Rate limited by Workflowy API",
                extra={
                    "extra_fields": {
                        "op": "request",
                        "method": prepared.method,
                        "path": prepared.path,
                        "status_code": 429,
                        "retry_after": delay,
                        "attempt": attempt + 1,
                    }
                },
            )
            return None
        return WorkflowyRateLimitError(
            429,
            "too many requests",
            context={
                "method": prepared.method,
                "path": prepared.path,
                "retry_after_seconds": delay,
                "attempts": attempt + 1,
            },
        )

    def _count_retry(self, prepared: PreparedRequest) -> None:
        self._metrics.increment(
            "workflowy.retries_total",
            tags={"method": prepared.method, "path": prepared.path, "reason": "rate_limited"},
        )

    def _finish(
        self,
        prepared: PreparedRequest,
        status: int,
        raw: bytes | None,
        decode: bool,
    ) -> Any:
        if self._config.debug_dump_payload:
            _dump_payload(
                prepared.method, prepared.url, prepared.headers, prepared.body,
                status, raw, api_key=self._config.api_key,
            )
        if not 200 <= status < 300:
            _raise_for_status(status, raw or b"", prepared.method, prepared.path)
        if not decode:
            return None
        if status == 204:
            return {}
        # Malformed JSON propagates unwrapped.
        return _json.loads(raw or b"")


def _cancelled(cancel: CancelToken | None) -> WorkflowyError:
    return cancel.error() if cancel is not None else WorkflowyCancelledError()


# ---------------------------------------------------------------------------
# Sync transport
# ---------------------------------------------------------------------------

class WorkflowyTransport(_TransportBase):
    """Synchronous transport over ``httpx.Client``.

    Parameters
    ----------
    config:
        A :class:`WorkflowyConfig` controlling auth, base URL and retries.
    http_client:
        Optional pre-configured ``httpx.Client``.  When omitted the
        transport creates (and owns) one with ``config.timeout_seconds``.
    clock:
        Time source for ``Retry-After`` dates and retry waits.
    """

    def __init__(
        self,
        config: WorkflowyConfig,
        http_client: httpx.Client | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(config, clock)
        self._owns_client = http_client is None
        self._client = http_client if http_client is not None else default_http_client(config)

    @property
    def http_client(self) -> httpx.Client:
        return self._client

    def set_http_client(self, http_client: httpx.Client | None) -> None:
        """Replace the underlying ``httpx.Client``.  ``None`` is a no-op.

        A client the transport created itself is closed; a supplied one
        stays owned by the caller.
        """
        if http_client is None or http_client is self._client:
            return
        previous, owned = self._client, self._owns_client
        self._client = http_client
        self._owns_client = False
        if owned:
            previous.close()

    # -- public API --------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        *,
        decode: bool = True,
        cancel: CancelToken | None = None,
    ) -> Any:
        """Build and send a request; see :meth:`prepare` and :meth:`send`."""
        prepared = self.prepare(method, path, json, cancel=cancel)
        return self.send(prepared, decode=decode, cancel=cancel)

    def send(
        self,
        prepared: PreparedRequest,
        *,
        decode: bool = True,
        cancel: CancelToken | None = None,
    ) -> Any:
        """Execute *prepared*, retrying on ``429`` as allowed.

        Parameters
        ----------
        prepared:
            Request from :meth:`prepare`.
        decode:
            When ``False`` the response body is discarded and ``None``
            returned.
        cancel:
            Optional token checked before every attempt and raced against
            the retry wait.

        Returns
        -------
        Any
            Decoded JSON body, or ``None`` when *decode* is ``False``.

        Raises
        ------
        WorkflowyNetworkError
            On connection-level failures (never retried).
        WorkflowyRateLimitError
            When the request is still rate limited after the allowed
            retries, or the server gave no usable ``Retry-After``.
        WorkflowyAPIError
            On any other non-2xx status.
        WorkflowyCancelledError
            When *cancel* is done before an attempt or during a wait.
        json.JSONDecodeError
            When a successful response is not valid JSON.
        """
        attempt = 0
        while True:
            if cancel is not None:
                cancel.raise_if_done()
            client = self._client
            started = time.monotonic()
            try:
                response = client.send(prepared.rewind(client), stream=True)
            except httpx.TransportError as exc:
                raise self._network_error(prepared, exc, attempt) from exc

            try:
                status = response.status_code
                self._record_response(prepared, status, started)
                if status == 429:
                    delay = self._rate_limit_delay(prepared, response)
                    error = self._rate_limit_error(prepared, delay, attempt)
                    if error is not None:
                        raise error
                else:
                    raw: bytes | None = None
                    if decode or not 200 <= status < 300 or self._config.debug_dump_payload:
                        try:
                            raw = response.read()
                        except httpx.TransportError as exc:
                            raise self._network_error(prepared, exc, attempt) from exc
                    return self._finish(prepared, status, raw, decode)
            finally:
                response.close()

            if wait_before_retry(delay, self._clock, cancel) is WaitOutcome.CANCELLED:
                raise _cancelled(cancel)
            self._count_retry(prepared)
            attempt += 1

    def close(self) -> None:
        """Close the underlying client if the transport created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> WorkflowyTransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncWorkflowyTransport(_TransportBase):
    """Asynchronous transport over ``httpx.AsyncClient``.

    Mirrors :class:`WorkflowyTransport`.  The retry wait is an ``await`` on
    the clock, so cancelling the calling task (directly or through
    ``asyncio.wait_for``) interrupts it and the cancellation propagates
    instead of the ``429`` error.
    """

    def __init__(
        self,
        config: WorkflowyConfig,
        http_client: httpx.AsyncClient | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(config, clock)
        self._owns_client = http_client is None
        self._client = (
            http_client if http_client is not None else default_async_http_client(config)
        )
        self._replaced_clients: list[httpx.AsyncClient] = []

    @property
    def http_client(self) -> httpx.AsyncClient:
        return self._client

    def set_http_client(self, http_client: httpx.AsyncClient | None) -> None:
        """Replace the underlying ``httpx.AsyncClient``.  ``None`` is a no-op.

        A client the transport created itself is closed by :meth:`close`;
        a supplied one stays owned by the caller.
        """
        if http_client is None or http_client is self._client:
            return
        if self._owns_client:
            self._replaced_clients.append(self._client)
        self._client = http_client
        self._owns_client = False

    # -- public API --------------------------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        *,
        decode: bool = True,
    ) -> Any:
        """Build and send a request (async); see :meth:`send`."""
        prepared = self.prepare(method, path, json)
        return await self.send(prepared, decode=decode)

    async def send(self, prepared: PreparedRequest, *, decode: bool = True) -> Any:
        """Execute *prepared*, retrying on ``429`` as allowed (async).

        See :meth:`WorkflowyTransport.send` for the full contract.
        """
        attempt = 0
        while True:
            client = self._client
            started = time.monotonic()
            try:
                response = await client.send(prepared.rewind(client), stream=True)
            except httpx.TransportError as exc:
                raise self._network_error(prepared, exc, attempt) from exc

            try:
                status = response.status_code
                self._record_response(prepared, status, started)
                if status == 429:
                    delay = self._rate_limit_delay(prepared, response)
                    error = self._rate_limit_error(prepared, delay, attempt)
                    if error is not None:
                        raise error
                else:
                    raw: bytes | None = None
                    if decode or not 200 <= status < 300 or self._config.debug_dump_payload:
                        try:
                            raw = await response.aread()
                        except httpx.TransportError as exc:
                            raise self._network_error(prepared, exc, attempt) from exc
                    return self._finish(prepared, status, raw, decode)
            finally:
                await response.aclose()

            await self._clock.asleep(delay)
            self._count_retry(prepared)
            attempt += 1

    async def close(self) -> None:
        """Close the underlying client (and any replaced one) if owned."""
        for replaced in self._replaced_clients:
            await replaced.aclose()
        self._replaced_clients.clear()
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncWorkflowyTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
