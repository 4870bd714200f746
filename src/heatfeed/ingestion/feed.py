"""Producer message classification for viewers."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from heatfeed.exceptions import MalformedMessageError
from heatfeed.ingestion.normalize import parse_json
from heatfeed.models.points import WeightedPoint


class MessageShape(StrEnum):
    HEATMAP_UPDATE = "heatmap_update"
    FULL_UPDATE = "full_update"
    BARE_ARRAY = "bare_array"
    NESTED_DATA = "nested_data"


def classify_feed_message(message: Any) -> tuple[MessageShape, list[Any]] | None:
    """Find the point list inside a producer message.

    Shapes are tried in precedence order: typed ``full_update``, typed
    ``heatmap_update``, a bare array, then any other object with an array
    ``data``. Returns ``None`` when nothing matches.
    """
    if isinstance(message, dict):
        data = message.get("data")
        kind = message.get("type")
        if kind == "full_update" and isinstance(data, list):
            return MessageShape.FULL_UPDATE, data
        if kind == "heatmap_update" and isinstance(data, list):
            return MessageShape.HEATMAP_UPDATE, data
    if isinstance(message, list):
        return MessageShape.BARE_ARRAY, message
    if isinstance(message, dict) and isinstance(message.get("data"), list):
        return MessageShape.NESTED_DATA, message["data"]
    return None


def parse_points(raw_points: list[Any]) -> list[WeightedPoint]:
    """Validate ``[[lat, lng, intensity], ...]`` into points.

    One bad entry rejects the whole list; partial sets are never applied.
    """
    points: list[WeightedPoint] = []
    for index, item in enumerate(raw_points):
        try:
            points.append(WeightedPoint.model_validate(item))
        except ValidationError as exc:
            raise MalformedMessageError(f"Invalid point at index {index}: {item!r}") from exc
    return points


def extract_points(raw: str | bytes) -> tuple[MessageShape, list[WeightedPoint]]:
    """Parse a text frame into its point set.

    Raises
    ------
    MalformedMessageError
        Invalid JSON, an unrecognised shape, or an invalid point.
    """
    message = parse_json(raw)
    classified = classify_feed_message(message)
    if classified is None:
        raise MalformedMessageError("Unknown message format", raw=raw)
    shape, raw_points = classified
    return shape, parse_points(raw_points)
