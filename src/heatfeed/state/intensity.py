"""Producer-owned crowd intensity."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from heatfeed._constants import CROWD_SCALE, INITIAL_INTENSITY
from heatfeed.ingestion.normalize import clamp_unit

_logger = logging.getLogger(__name__)


@dataclass
class IntensityState:
    """Crowd intensity at the point of interest.

    ``value`` stays inside ``[0, 1]`` after every mutation. Writers are the
    tick loop and any connected viewer; the last writer wins.
    """

    value: float = INITIAL_INTENSITY
    update_count: int = 0
    gathering_active: bool = True

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "value":
            value = clamp_unit(value)
        super().__setattr__(name, value)

    @property
    def crowd_count(self) -> int:
        return int(self.value * CROWD_SCALE)

    def set_intensity(self, value: float) -> float:
        self.value = value
        _logger.info("Crowd intensity manually set to: %.3f", self.value)
        return self.value

    def set_gathering(self, active: bool) -> None:
        self.gathering_active = active
        _logger.info("Crowd gathering: %s", "ACTIVE" if active else "PAUSED")
