"""Normalization helpers.

Numeric parsing, clamping and JSON decoding for feed frames.
"""

from __future__ import annotations

import json
import math
from typing import Any

from heatfeed.exceptions import MalformedMessageError


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_unit(value: float) -> float:
    """Clamp *value* into ``[0.0, 1.0]``."""
    return clamp(value, 0.0, 1.0)


def parse_json(raw: str | bytes) -> Any:
    """Decode a websocket text frame, raising :class:`MalformedMessageError`."""
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedMessageError(f"Invalid JSON: {exc}", raw=raw) from exc
