"""Simulated crowd activity around the point of interest.

All randomness comes from the ``random.Random`` passed in, so a seeded
generator replays the same feed.
"""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Sequence

from heatfeed._constants import (
    BACKGROUND_FLOOR,
    BACKGROUND_VARIATION,
    BASE_POINTS,
    CLUSTER_MAX_POINTS,
    CLUSTER_MIN_POINTS,
    CLUSTER_SPREAD_DEG,
    INTENSITY_FLOOR,
    INTENSITY_VARIATION,
    SOMNATH_LAT,
    SOMNATH_LNG,
    SPIKE_AMOUNT,
    SPIKE_PROBABILITY,
)
from heatfeed.ingestion.normalize import clamp, clamp_unit
from heatfeed.models.points import WeightedPoint
from heatfeed.state.intensity import IntensityState

_logger = logging.getLogger(__name__)


def base_points() -> list[WeightedPoint]:
    return [WeightedPoint.model_validate(point) for point in BASE_POINTS]


def cluster_size(intensity: float) -> int:
    """Total points in a cluster, center included: 5 at rest, 20 at peak."""
    size = math.floor(clamp_unit(intensity) * (CLUSTER_MAX_POINTS - CLUSTER_MIN_POINTS)) + CLUSTER_MIN_POINTS
    return int(clamp(size, CLUSTER_MIN_POINTS, CLUSTER_MAX_POINTS))


def generate_cluster_points(
    intensity: float,
    rng: random.Random,
    *,
    center: tuple[float, float] = (SOMNATH_LAT, SOMNATH_LNG),
) -> list[WeightedPoint]:
    """Regenerate the point of interest cluster.

    The first point is the center carrying *intensity* exactly. Satellites
    sit within ``CLUSTER_SPREAD_DEG`` of the center and carry slightly less.
    """
    intensity = clamp_unit(intensity)
    lat, lng = center
    points = [WeightedPoint(latitude=lat, longitude=lng, intensity=intensity)]

    for _ in range(cluster_size(intensity) - 1):
        lat_offset = (rng.random() - 0.5) * CLUSTER_SPREAD_DEG
        lng_offset = (rng.random() - 0.5) * CLUSTER_SPREAD_DEG
        point_intensity = intensity * (0.7 + rng.random() * 0.3)
        points.append(
            WeightedPoint(
                latitude=lat + lat_offset,
                longitude=lng + lng_offset,
                intensity=min(1.0, point_intensity),
            )
        )
    return points


def jitter_background(points: Sequence[WeightedPoint], rng: random.Random) -> list[WeightedPoint]:
    """Simulate normal activity: each point drifts independently, never below the floor."""
    jittered: list[WeightedPoint] = []
    for point in points:
        variation = (rng.random() - 0.5) * BACKGROUND_VARIATION
        jittered.append(
            point.model_copy(update={"intensity": clamp(point.intensity + variation, BACKGROUND_FLOOR, 1.0)})
        )
    return jittered


def advance_gathering(state: IntensityState, rng: random.Random) -> bool:
    """Move the intensity one tick toward a full crowd.

    Does nothing while gathering is paused. Returns ``True`` when this tick
    produced a surge.
    """
    if not state.gathering_active:
        return False

    state.update_count += 1
    # Reaches 1.0 after 100 ticks (about five minutes at the default cadence).
    target = min(1.0, 0.5 + (state.update_count / 100) * 0.5)
    variation = (rng.random() - 0.5) * INTENSITY_VARIATION
    state.value = clamp(target + variation, INTENSITY_FLOOR, 1.0)

    if rng.random() < SPIKE_PROBABILITY:
        state.value = min(1.0, state.value + SPIKE_AMOUNT)
        _logger.info("Peak crowd detected at Somnath Temple (intensity %.3f)", state.value)
        return True
    return False


def current_points(state: IntensityState, rng: random.Random, *, jitter: bool = False) -> list[WeightedPoint]:
    """Background points followed by a freshly generated cluster."""
    background = base_points()
    if jitter:
        background = jitter_background(background, rng)
    return [*background, *generate_cluster_points(state.value, rng)]
