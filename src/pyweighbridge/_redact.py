"""Redaction for identification debug logs.

Three things reach DEBUG logs from the identification client: request
headers (which may carry the API key), the JPEG frame, and the decoded
JSON response. Keys and frames never leave this module intact.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_SECRET_HEADERS = frozenset({"authorization", "x-api-key"})
_SECRET_FIELDS = frozenset({"api_key", "apikey", "token", "image", "inlinedata"})


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else f"{text[:limit]}…<truncated>"


def redact_for_log(value: Any, *, max_string: int = 256) -> Any:
    """Return a log-safe rendering of a header map, a frame or a response body."""
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, str):
        return _clip(value, max_string)
    if isinstance(value, Mapping):
        return {
            str(key): (
                "<redacted>"
                if str(key).lower() in _SECRET_HEADERS | _SECRET_FIELDS
                else redact_for_log(item, max_string=max_string)
            )
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [redact_for_log(item, max_string=max_string) for item in value]
    return value
