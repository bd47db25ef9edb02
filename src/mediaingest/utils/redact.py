"""Payload redaction for safe debug dumps and logs.

Upload requests carry the raw file bytes and the upload preset.  Before a
request or response is written anywhere, :func:`redact` is applied:

* **Binary values** (``bytes`` or multipart file tuples) are replaced with
  ``<binary:N_bytes>``.
* **Base64 data URIs** (``data:<mime>;base64,...``), which users sometimes
  paste into URL fields, are replaced with ``<data_uri:N_bytes>``.
* **Sensitive keys** (``upload_preset``, ``api_key``, ``signature``, ...)
  are masked, showing only the last four characters.
* An explicit *secret* string is scrubbed from every string value.
"""

from __future__ import annotations

import base64
import binascii
import copy
import re
from typing import Any

# Matches RFC 2397 data URIs with base64 encoding.
_DATA_URI_RE = re.compile(
    r"data:[a-zA-Z0-9_.+-]+/[a-zA-Z0-9_.+-]+;base64,[A-Za-z0-9+/=]+"
)

# Substrings: if any of these appear in a key name (case-insensitive), the
# value is masked.
_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "upload_preset",
    "api_key",
    "api_secret",
    "signature",
    "token",
    "secret",
    "authorization",
    "cookie",
})


def _mask(value: str, secret: str | None) -> str:
    """Mask *value*, keeping at most its last four characters."""
    if secret and secret in value:
        suffix = secret[-4:] if len(secret) >= 4 else "****"
        placeholder = f"<redacted:...{suffix}>"
        if secret in placeholder:
            placeholder = "<redacted>"
        return value.replace(secret, placeholder)
    if len(value) >= 8:
        return f"<redacted:...{value[-4:]}>"
    return "<redacted>"


def _estimate_data_uri_bytes(uri: str) -> int:
    """Return the approximate decoded byte length of a data URI."""
    b64_part = uri.split(";base64,", 1)[-1]
    try:
        return len(base64.b64decode(b64_part, validate=True))
    except (binascii.Error, ValueError):
        return len(b64_part) * 3 // 4


def _redact_value(value: Any, secret: str | None) -> Any:
    """Redact a single value (recursive for containers)."""
    if isinstance(value, dict):
        return _redact_dict(value, secret)
    if isinstance(value, list):
        return [_redact_value(item, secret) for item in value]
    if isinstance(value, tuple):
        # httpx multipart file tuples: (filename, content, content_type)
        return tuple(_redact_value(item, secret) for item in value)
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    if isinstance(value, str):
        if _DATA_URI_RE.search(value):
            value = _DATA_URI_RE.sub(
                lambda m: f"<data_uri:{_estimate_data_uri_bytes(m.group(0))}_bytes>",
                value,
            )
        if secret and secret in value:
            value = _mask(value, secret)
        return value
    return value


def _redact_dict(d: dict, secret: str | None) -> dict:
    """Recursively redact a dictionary."""
    result: dict = {}
    for key, value in d.items():
        key_lower = key.lower() if isinstance(key, str) else ""
        if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
            result[key] = _mask(value, secret) if isinstance(value, str) else "<redacted>"
        else:
            result[key] = _redact_value(value, secret)
    return result


def redact(payload: dict, secret: str | None = None) -> dict:
    """Return a deep copy of *payload* with sensitive data redacted.

    Parameters
    ----------
    payload:
        The dictionary to sanitize (typically upload form fields, files and
        the provider's response body).
    secret:
        The configured upload preset.  Any occurrence of this exact string
        anywhere in the payload is masked.

    Returns
    -------
    dict
        A new dictionary; the original *payload* is never mutated.

    Examples
    --------
    >>> redact({"upload_preset": "listing-preset"})
    {'upload_preset': '<redacted:...eset>'}
    """
    safe = copy.deepcopy(payload)
    return _redact_dict(safe, secret)
