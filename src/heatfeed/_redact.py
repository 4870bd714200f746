"""Helpers for compact debug logging.

Feed messages carry dozens of points and raw frames can be arbitrarily
large. This module trims them before they reach DEBUG/WARNING logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any


def summarize_for_log(value: Any, *, max_string: int = 256, max_items: int = 5, _depth: int = 0) -> Any:
    """Return a trimmed copy of *value* suitable for logs."""
    if _depth > 10:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        return {
            str(k): summarize_for_log(v, max_string=max_string, max_items=max_items, _depth=_depth + 1)
            for k, v in value.items()
        }

    if isinstance(value, Sequence):
        items = [
            summarize_for_log(v, max_string=max_string, max_items=max_items, _depth=_depth + 1)
            for v in list(value)[:max_items]
        ]
        if len(value) > max_items:
            items.append(f"<{len(value) - max_items} more>")
        return items

    return summarize_for_log(repr(value), max_string=max_string, max_items=max_items, _depth=_depth + 1)
