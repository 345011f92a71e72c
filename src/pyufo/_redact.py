"""Masking of posted form fields for debug logs.

Login and settings forms carry passwords and anti-forgery tokens, and file
fields can be large. Field names are matched case-insensitively, either
exactly or by a marker they contain (``new_password``, ``api_token``).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pyufo.form import FileField

_SENSITIVE_FIELD_NAMES: frozenset[str] = frozenset(
    {
        "pin",
        "otp",
        "cvc",
        "cvv",
        "card_number",
        "authorization",
        "cookie",
        "session_id",
        "csrfmiddlewaretoken",
    }
)
_SENSITIVE_FIELD_MARKERS: tuple[str, ...] = ("password", "passwd", "secret", "token", "api_key")

_MASK = "<redacted>"


def _is_sensitive_field(name: str) -> bool:
    lowered = name.lower()
    return lowered in _SENSITIVE_FIELD_NAMES or any(marker in lowered for marker in _SENSITIVE_FIELD_MARKERS)


def redact_for_log(value: Any, *, max_string: int = 200, _depth: int = 0) -> Any:
    """Return a copy of *value* with sensitive form fields masked.

    ``(name, value)`` form entries and mapping items are masked by field
    name. File fields are reduced to their name and size, long strings are
    truncated.
    """
    if _depth > 20:
        return "<max-depth>"

    if value is None or isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, FileField):
        return f"<file:{value.filename}:{value.size}b>"

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if _is_sensitive_field(key):
                redacted[key] = _MASK
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, tuple) and len(value) == 2 and isinstance(value[0], str):
        name, item = value
        if _is_sensitive_field(name):
            return (name, _MASK)
        return (name, redact_for_log(item, max_string=max_string, _depth=_depth + 1))

    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
