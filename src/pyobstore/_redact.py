"""Log-safe summaries of stored values.

Store payloads are opaque and may be large or hold credentials.  Mutation
DEBUG logs pass values through :func:`summarize_for_log` instead of logging
them verbatim.
"""

from __future__ import annotations

import itertools
from collections.abc import Mapping, Sequence
from typing import Any

from pyobstore._missing import MISSING

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "passwd",
        "secret",
        "token",
        "accesstoken",
        "refreshtoken",
        "apikey",
        "authorization",
        "cookie",
    }
)

_MAX_ITEMS = 20


def _is_sensitive(key: str) -> bool:
    return key.replace("_", "").replace("-", "").lower() in _SENSITIVE_KEYS


def summarize_for_log(value: Any, *, max_string: int = 120) -> Any:
    """Return a shortened, redacted copy of *value* for log messages.

    Never raises: a value that cannot be walked is reported by type name.
    """
    try:
        return _summarize(value, max_string, 0)
    except Exception:
        return f"<{type(value).__name__}>"


def _summarize(value: Any, max_string: int, depth: int) -> Any:
    if depth > 5:
        return "<max-depth>"

    if value is None or value is MISSING:
        return value

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        summary: dict[str, Any] = {}
        for index, (k, v) in enumerate(value.items()):
            if index >= _MAX_ITEMS:
                summary["…"] = f"<{len(value) - _MAX_ITEMS} more>"
                break
            key = str(k)
            if _is_sensitive(key):
                summary[key] = "<redacted>"
            else:
                summary[key] = _summarize(v, max_string, depth + 1)
        return summary

    if isinstance(value, Sequence):
        # islice: deque and other sequences without slice support.
        items = [_summarize(v, max_string, depth + 1) for v in itertools.islice(value, _MAX_ITEMS)]
        if len(value) > _MAX_ITEMS:
            items.append(f"<{len(value) - _MAX_ITEMS} more>")
        return items

    # Unknown objects: type name only, no attribute dump.
    return f"<{type(value).__name__}>"
