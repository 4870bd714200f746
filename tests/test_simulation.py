from __future__ import annotations

import random

import pytest

from heatfeed._constants import BASE_POINTS, SOMNATH_LAT, SOMNATH_LNG
from heatfeed.models import WeightedPoint
from heatfeed.simulation import (
    advance_gathering,
    cluster_size,
    current_points,
    generate_cluster_points,
    jitter_background,
)
from heatfeed.state.intensity import IntensityState


class _ScriptedRandom(random.Random):
    """Returns the scripted values from ``random()`` in order."""

    def __init__(self, values: list[float]) -> None:
        super().__init__(0)
        self._values = list(values)

    def random(self) -> float:
        return self._values.pop(0)


def test_full_intensity_cluster_has_exact_center_and_twenty_points() -> None:
    for seed in range(25):
        points = generate_cluster_points(1.0, random.Random(seed))

        assert points[0] == WeightedPoint(latitude=SOMNATH_LAT, longitude=SOMNATH_LNG, intensity=1.0)
        assert 5 <= len(points) <= 20
        assert len(points) == 20


@pytest.mark.parametrize("intensity", [-2.0, 0.0, 0.3, 0.5, 0.99, 1.0, 7.5])
def test_cluster_size_bounds(intensity: float) -> None:
    points = generate_cluster_points(intensity, random.Random(3))

    assert 5 <= len(points) <= 20
    assert len(points) == cluster_size(intensity)
    assert all(0.0 <= p.intensity <= 1.0 for p in points)


def test_satellites_stay_near_center_and_below_center_intensity() -> None:
    points = generate_cluster_points(0.8, random.Random(11))

    for point in points[1:]:
        assert abs(point.latitude - SOMNATH_LAT) <= 0.005
        assert abs(point.longitude - SOMNATH_LNG) <= 0.005
        assert 0.8 * 0.7 <= point.intensity <= 0.8


def test_background_jitter_is_small_and_floored() -> None:
    rng = random.Random(5)
    points = [WeightedPoint(latitude=22.0, longitude=72.0, intensity=0.1)] * 50 + [
        WeightedPoint(latitude=23.0, longitude=71.0, intensity=0.98)
    ] * 50

    jittered = jitter_background(points, rng)

    for before, after in zip(points, jittered, strict=True):
        assert (after.latitude, after.longitude) == (before.latitude, before.longitude)
        assert 0.1 <= after.intensity <= 1.0
        assert abs(after.intensity - before.intensity) <= 0.05 + 1e-9


def test_paused_gathering_leaves_intensity_untouched() -> None:
    state = IntensityState(value=0.42, gathering_active=False)
    rng = random.Random(1)

    for _ in range(50):
        assert advance_gathering(state, rng) is False

    assert state.value == 0.42
    assert state.update_count == 0


def test_gathering_tick_stays_in_bounds() -> None:
    state = IntensityState()
    rng = random.Random(2)

    for _ in range(300):
        advance_gathering(state, rng)
        assert 0.3 <= state.value <= 1.0

    assert state.update_count == 300
    assert state.value >= 0.975


def test_spike_adds_surge_and_clamps() -> None:
    # variation draw 0.5 -> no jitter; spike draw 0.0 -> surge.
    state = IntensityState()
    assert advance_gathering(state, _ScriptedRandom([0.5, 0.0])) is True
    assert state.value == pytest.approx(0.505 + 0.2)

    state = IntensityState(update_count=200)
    assert advance_gathering(state, _ScriptedRandom([0.5, 0.0])) is True
    assert state.value == 1.0


def test_no_spike_above_threshold() -> None:
    state = IntensityState()
    assert advance_gathering(state, _ScriptedRandom([0.5, 0.1])) is False
    assert state.value == pytest.approx(0.505)


def test_current_points_puts_background_first() -> None:
    state = IntensityState(value=0.5)
    points = current_points(state, random.Random(9))

    assert [p.as_list() for p in points[: len(BASE_POINTS)]] == [list(p) for p in BASE_POINTS]
    assert points[len(BASE_POINTS)].as_list() == [SOMNATH_LAT, SOMNATH_LNG, 0.5]
    assert len(points) == len(BASE_POINTS) + cluster_size(0.5)


def test_intensity_assignment_is_always_clamped() -> None:
    state = IntensityState(value=3.0)
    assert state.value == 1.0

    state.value = -0.5
    assert state.value == 0.0

    state.value = 0.42
    assert state.value == 0.42
