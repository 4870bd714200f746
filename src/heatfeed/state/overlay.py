"""Viewer-owned heat overlay and connection state."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from enum import StrEnum

from heatfeed._constants import FALLBACK_POINTS
from heatfeed.models.points import WeightedPoint

_logger = logging.getLogger(__name__)


class ConnectionState(StrEnum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


def fallback_points() -> tuple[WeightedPoint, ...]:
    return tuple(WeightedPoint.model_validate(point) for point in FALLBACK_POINTS)


class HeatOverlay:
    """The single rendered heat layer.

    Every update replaces the whole point set in one assignment; nothing is
    merged with what was shown before. ``on_replace`` receives the new set
    after the assignment (typically the render surface). A failing
    ``on_replace`` is logged and the assignment stands.
    """

    def __init__(
        self,
        *,
        fallback: Sequence[WeightedPoint] | None = None,
        on_replace: Callable[[tuple[WeightedPoint, ...]], None] | None = None,
    ) -> None:
        self._fallback = tuple(fallback) if fallback is not None else fallback_points()
        self._points: tuple[WeightedPoint, ...] = ()
        self._on_replace = on_replace
        self._showing_fallback = False

    @property
    def points(self) -> tuple[WeightedPoint, ...]:
        return self._points

    @property
    def fallback(self) -> tuple[WeightedPoint, ...]:
        return self._fallback

    @property
    def showing_fallback(self) -> bool:
        return self._showing_fallback

    def replace(self, points: Iterable[WeightedPoint]) -> None:
        self._set(tuple(points), fallback=False)
        _logger.debug("Heatmap updated with %d data points", len(self._points))

    def show_fallback(self) -> None:
        self._set(self._fallback, fallback=True)
        _logger.info("Using fallback static data with %d data points", len(self._fallback))

    def _set(self, points: tuple[WeightedPoint, ...], *, fallback: bool) -> None:
        self._points = points
        self._showing_fallback = fallback
        if self._on_replace is None:
            return
        try:
            self._on_replace(points)
        except Exception:
            # The overlay keeps the new set; only the render of it is lost.
            _logger.exception("Failed to render %d heat points", len(points))
