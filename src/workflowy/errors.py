"""Error hierarchy for the workflowy client.

Every public error class inherits from :class:`WorkflowyError`.  Each carries
a machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

The categories map onto the failure modes of a call:

* local validation (:class:`WorkflowyValidationError`), raised before any
  network traffic;
* transport failures (:class:`WorkflowyNetworkError`,
  :class:`WorkflowyRequestError`, :class:`WorkflowyCancelledError`);
* classified API errors (:class:`WorkflowyAPIError` and its per-status
  subclasses);
* contract violations (:class:`WorkflowyContractError`), where the server
  reports success but the payload is not what the API promises.

Malformed JSON on a successful response is not wrapped:
:class:`json.JSONDecodeError` reaches the caller as-is.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the client can raise."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    REQUEST_ERROR = "REQUEST_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    CANCELLED = "CANCELLED"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"
    API_ERROR = "API_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    CONTRACT_ERROR = "CONTRACT_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class WorkflowyError(Exception):
    """Base exception for all workflowy errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Local and transport errors
# ---------------------------------------------------------------------------

class WorkflowyValidationError(WorkflowyError):
    """A required argument was missing or empty; nothing was sent.

    Context keys: ``field``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class WorkflowyRequestError(WorkflowyError):
    """The request could not be built (e.g. the body is not JSON-serialisable).

    Context keys: ``method``, ``path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.REQUEST_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class WorkflowyNetworkError(WorkflowyError):
    """A transport-level failure occurred (timeout, DNS, connection reset).

    Never retried by the client.

    Context keys: ``method``, ``path``, ``attempt``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class WorkflowyCancelledError(WorkflowyError):
    """The caller's :class:`~workflowy.cancel.CancelToken` was cancelled."""

    def __init__(
        self,
        message: str = "operation cancelled",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        code: str = ErrorCode.CANCELLED,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class WorkflowyDeadlineExceededError(WorkflowyCancelledError):
    """The caller's deadline passed before the operation finished."""

    def __init__(
        self,
        message: str = "deadline exceeded",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            context=context,
            cause=cause,
            code=ErrorCode.DEADLINE_EXCEEDED,
        )


# ---------------------------------------------------------------------------
# API errors
# ---------------------------------------------------------------------------

class WorkflowyAPIError(WorkflowyError):
    """The API answered with a non-2xx status.

    The rendered message always contains the numeric status code, followed
    by the server's ``message`` (preferred) or ``error`` text when either is
    present.

    Attributes
    ----------
    status_code:
        HTTP status of the response.
    api_message:
        ``message`` field of the error body, ``""`` when absent.
    error_text:
        ``error`` field of the error body, ``""`` when absent.
    """

    default_code: str = ErrorCode.API_ERROR

    def __init__(
        self,
        status_code: int,
        api_message: str = "",
        error_text: str = "",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.status_code = status_code
        self.api_message = api_message
        self.error_text = error_text
        ctx = {"status_code": status_code}
        ctx.update(context or {})
        super().__init__(
            code=self.default_code,
            message=self.render(status_code, api_message, error_text),
            context=ctx,
            cause=cause,
        )

    @staticmethod
    def render(status_code: int, api_message: str = "", error_text: str = "") -> str:
        if api_message:
            return f"workflowy api error ({status_code}): {api_message}"
        if error_text:
            return f"workflowy api error ({status_code}): {error_text}"
        return f"workflowy api error ({status_code})"


class WorkflowyAuthError(WorkflowyAPIError):
    """401 -- the API key is missing, invalid or revoked."""

    default_code = ErrorCode.AUTH_ERROR


class WorkflowyPermissionError(WorkflowyAPIError):
    """403 -- the key is valid but may not access the resource."""

    default_code = ErrorCode.PERMISSION_ERROR


class WorkflowyNotFoundError(WorkflowyAPIError):
    """404 -- the node (or endpoint) does not exist."""

    default_code = ErrorCode.NOT_FOUND


class WorkflowyRateLimitError(WorkflowyAPIError):
    """429 -- rate limit still exceeded after the allowed retries.

    Context keys: ``retry_after_seconds``, ``attempts``.
    """

    default_code = ErrorCode.RATE_LIMITED


_STATUS_ERRORS: dict[int, type[WorkflowyAPIError]] = {
    401: WorkflowyAuthError,
    403: WorkflowyPermissionError,
    404: WorkflowyNotFoundError,
    429: WorkflowyRateLimitError,
}


def api_error_for_status(
    status_code: int,
    api_message: str = "",
    error_text: str = "",
    context: dict[str, Any] | None = None,
) -> WorkflowyAPIError:
    """Return the :class:`WorkflowyAPIError` subclass instance for *status_code*."""
    cls = _STATUS_ERRORS.get(status_code, WorkflowyAPIError)
    return cls(status_code, api_message, error_text, context=context)


# ---------------------------------------------------------------------------
# Contract errors
# ---------------------------------------------------------------------------

class WorkflowyContractError(WorkflowyError):
    """The server reported success but broke the response contract.

    Raised for an empty ``item_id`` on creation or a mutation whose
    ``status`` is not ``"ok"``.

    Context keys: ``operation``, ``status``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CONTRACT_ERROR,
            message=message,
            context=context,
            cause=cause,
        )
