"""Secret redaction for debug dumps.

:func:`redact` is applied to every request/response dump before it leaves the
process:

* values under secret-looking keys (``Authorization``, ``api_key``, ...) are
  masked, keeping at most the last four characters of the API key;
* any occurrence of the API key inside other strings is scrubbed;
* ``Bearer <credential>`` patterns are masked wherever they appear;
* raw bytes are replaced with ``<binary:N_bytes>``.
"""

from __future__ import annotations

import copy
import re
from typing import Any

# If any of these appear in a key name (case-insensitive) the value is masked.
_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "authorization",
    "api_key",
    "api-key",
    "apikey",
    "token",
    "secret",
    "password",
    "cookie",
})

_BEARER_RE = re.compile(r"(Bearer\s+)\S+")


def _mask_key(value: str, api_key: str | None) -> str:
    if api_key and api_key in value:
        suffix = api_key[-4:] if len(api_key) >= 8 else "****"
        value = value.replace(api_key, f"<redacted:...{suffix}>")
    return _BEARER_RE.sub(lambda m: f"{m.group(1)}<redacted>", value)


def _redact_value(value: Any, api_key: str | None) -> Any:
    if isinstance(value, dict):
        return _redact_dict(value, api_key)
    if isinstance(value, list):
        return [_redact_value(item, api_key) for item in value]
    if isinstance(value, str):
        return _mask_key(value, api_key)
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    return value


def _redact_dict(d: dict, api_key: str | None) -> dict:
    result: dict = {}
    for key, value in d.items():
        key_lower = key.lower() if isinstance(key, str) else ""
        if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
            masked = _mask_key(value, api_key) if isinstance(value, str) else value
            result[key] = masked if masked != value else "<redacted>"
        else:
            result[key] = _redact_value(value, api_key)
    return result


def redact(payload: dict, api_key: str | None = None) -> dict:
    """Return a deep copy of *payload* with credentials removed.

    Parameters
    ----------
    payload:
        Dictionary to sanitise (request headers, bodies, dump records).
    api_key:
        The Workflowy API key.  Every occurrence is replaced, wherever it
        appears in the tree.

    Examples
    --------
    >>> redact({"Authorization": "Bearer wf_abc123"})
    {'Authorization': 'Bearer <redacted>'}
    """
    return _redact_dict(copy.deepcopy(payload), api_key)
