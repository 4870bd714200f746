from __future__ import annotations

import json
import random
from datetime import UTC, datetime

import pytest

from heatfeed._constants import BASE_POINTS, SOMNATH_LAT, SOMNATH_LNG
from heatfeed.config import FeedConfig
from heatfeed.server import FeedContext
from heatfeed.simulation import cluster_size
from heatfeed.state.intensity import IntensityState


class _FakeViewer:
    def __init__(self, *, closed: bool = False, fail: bool = False) -> None:
        self.closed = closed
        self.fail = fail
        self.sent: list[str] = []

    async def send_str(self, data: str, compress: int | None = None) -> None:
        if self.fail:
            raise ConnectionResetError("Cannot write to closing transport")
        self.sent.append(data)


def _context(**state_kwargs) -> FeedContext:
    return FeedContext(
        FeedConfig(),
        state=IntensityState(**state_kwargs),
        rng=random.Random(42),
        clock=lambda: datetime(2026, 3, 1, 12, 30, 15, 250000, tzinfo=UTC),
    )


@pytest.mark.parametrize(("requested", "stored"), [(2.5, 1.0), (-3, 0.0), (0.25, 0.25), (1e9, 1.0)])
def test_set_crowd_intensity_is_clamped(requested: float, stored: float) -> None:
    ctx = _context()

    reply = ctx.handle_text(json.dumps({"type": "set_crowd_intensity", "intensity": requested}))

    assert reply is None
    assert ctx.state.value == stored


def test_non_numeric_intensity_is_ignored() -> None:
    ctx = _context(value=0.6)

    ctx.handle_text(json.dumps({"type": "set_crowd_intensity", "intensity": "lots"}))
    ctx.handle_text(json.dumps({"type": "set_crowd_intensity"}))

    assert ctx.state.value == 0.6


def test_toggle_gathering() -> None:
    ctx = _context()

    ctx.handle_text(json.dumps({"type": "toggle_gathering", "active": False}))
    assert ctx.state.gathering_active is False

    ctx.handle_text(json.dumps({"type": "toggle_gathering", "active": True}))
    assert ctx.state.gathering_active is True


def test_request_data_answers_configured_region_only() -> None:
    ctx = _context(value=0.5)

    reply = ctx.handle_text(json.dumps({"type": "request_data", "region": "Gujarat"}))
    assert reply is not None
    assert reply.type == "full_update"
    assert reply.message == "Somnath Temple crowd intensity: 0.50"
    assert len(reply.data) == len(BASE_POINTS) + cluster_size(0.5)

    assert ctx.handle_text(json.dumps({"type": "request_data", "region": "kerala"})) is None


@pytest.mark.parametrize(
    "raw",
    [
        "{broken",
        "[]",
        '"text"',
        json.dumps({"type": "dance"}),
        json.dumps({"type": ["request_data"]}),
        json.dumps({"type": {"x": 1}}),
        json.dumps({"type": None}),
    ],
)
def test_malformed_or_unknown_messages_change_nothing(raw: str) -> None:
    ctx = _context(value=0.7)

    assert ctx.handle_text(raw) is None
    assert ctx.state == IntensityState(value=0.7)


def test_welcome_message_reports_intensity() -> None:
    ctx = _context(value=0.5)

    welcome = ctx.welcome()

    assert welcome.message == "Initial heatmap data - Somnath Temple crowd intensity: 0.50"
    assert welcome.data[len(BASE_POINTS)].as_list() == [SOMNATH_LAT, SOMNATH_LNG, 0.5]


def test_tick_without_viewers_is_a_no_op() -> None:
    ctx = _context()

    assert ctx.tick() is None
    assert ctx.state == IntensityState()


def test_tick_builds_heatmap_update() -> None:
    ctx = _context()
    ctx.viewers.add(_FakeViewer())

    update = ctx.tick()

    assert update is not None
    assert ctx.state.update_count == 1
    assert update.timestamp == "2026-03-01T12:30:15.250Z"
    assert update.somnath_intensity == f"{ctx.state.value:.3f}"
    assert update.crowd_count == int(ctx.state.value * 1000)
    assert len(update.data) == len(BASE_POINTS) + cluster_size(ctx.state.value)
    assert update.data[len(BASE_POINTS)].as_list() == [SOMNATH_LAT, SOMNATH_LNG, ctx.state.value]
    for point in update.data:
        assert 0.0 <= point.intensity <= 1.0


def test_paused_ticks_keep_intensity_except_overrides() -> None:
    ctx = _context(gathering_active=False, value=0.4)
    ctx.viewers.add(_FakeViewer())

    for _ in range(10):
        assert ctx.tick() is not None
    assert ctx.state.value == 0.4

    ctx.handle_text(json.dumps({"type": "set_crowd_intensity", "intensity": 0.9}))
    for _ in range(10):
        ctx.tick()
    assert ctx.state.value == 0.9
    assert ctx.state.update_count == 0


@pytest.mark.asyncio
async def test_broadcast_skips_closed_and_failing_viewers() -> None:
    ctx = _context()
    open_viewer = _FakeViewer()
    closed_viewer = _FakeViewer(closed=True)
    broken_viewer = _FakeViewer(fail=True)
    ctx.viewers.update({open_viewer, closed_viewer, broken_viewer})

    update = ctx.tick()
    assert update is not None
    sent = await ctx.broadcast(update)

    assert sent == 1
    assert closed_viewer.sent == []
    assert json.loads(open_viewer.sent[0])["type"] == "heatmap_update"
