from __future__ import annotations

import asyncio
import math
import random

import aiohttp
import pytest
from aiohttp.test_utils import TestServer

from heatfeed.config import FeedConfig
from heatfeed.server import FeedContext, FeedServer

PATH = "/heatmap-updates"


def _server() -> FeedServer:
    # Long interval: ticks are driven explicitly with tick_once().
    config = FeedConfig(tick_interval=3600)
    return FeedServer(context=FeedContext(config, rng=random.Random(1)))


@pytest.mark.asyncio
async def test_new_viewer_receives_full_update() -> None:
    server = _server()
    async with TestServer(server.build_app()) as test_server, aiohttp.ClientSession() as session:
        async with session.ws_connect(test_server.make_url(PATH)) as ws:
            welcome = await ws.receive_json(timeout=2)

    assert welcome["type"] == "full_update"
    assert welcome["message"].startswith("Initial heatmap data")
    assert all(len(point) == 3 for point in welcome["data"])


@pytest.mark.asyncio
async def test_set_crowd_intensity_end_to_end() -> None:
    server = _server()
    async with TestServer(server.build_app()) as test_server, aiohttp.ClientSession() as session:
        async with session.ws_connect(test_server.make_url(PATH)) as ws:
            await ws.receive_json(timeout=2)

            await ws.send_json({"type": "set_crowd_intensity", "intensity": 2.5})
            await ws.send_json({"type": "request_data", "region": "gujarat"})
            reply = await ws.receive_json(timeout=2)
            assert reply["message"] == "Somnath Temple crowd intensity: 1.00"
            assert server.context.state.value == 1.0

            await ws.send_json({"type": "set_crowd_intensity", "intensity": -3})
            await ws.send_json({"type": "request_data", "region": "gujarat"})
            await ws.receive_json(timeout=2)
            assert server.context.state.value == 0.0


@pytest.mark.asyncio
async def test_malformed_json_keeps_connection_open() -> None:
    server = _server()
    async with TestServer(server.build_app()) as test_server, aiohttp.ClientSession() as session:
        async with session.ws_connect(test_server.make_url(PATH)) as ws:
            await ws.receive_json(timeout=2)

            await ws.send_str("{definitely not json")
            await ws.send_json({"type": {"x": 1}})
            await ws.send_json({"type": ["request_data"]})
            await ws.send_json({"type": "request_data", "region": "gujarat"})
            reply = await ws.receive_json(timeout=2)

            assert reply["type"] == "full_update"
            assert not ws.closed


@pytest.mark.asyncio
async def test_tick_broadcasts_to_connected_viewers() -> None:
    server = _server()
    async with TestServer(server.build_app()) as test_server, aiohttp.ClientSession() as session:
        async with (
            session.ws_connect(test_server.make_url(PATH)) as first,
            session.ws_connect(test_server.make_url(PATH)) as second,
        ):
            await first.receive_json(timeout=2)
            await second.receive_json(timeout=2)

            update = await server.tick_once()
            assert update is not None

            for ws in (first, second):
                message = await ws.receive_json(timeout=2)
                assert message["type"] == "heatmap_update"
                assert message["crowdCount"] == math.floor(server.context.state.value * 1000)
                assert message["somnathIntensity"] == f"{server.context.state.value:.3f}"
                assert message["timestamp"].endswith("Z")


@pytest.mark.asyncio
async def test_paused_gathering_end_to_end() -> None:
    server = _server()
    async with TestServer(server.build_app()) as test_server, aiohttp.ClientSession() as session:
        async with session.ws_connect(test_server.make_url(PATH)) as ws:
            await ws.receive_json(timeout=2)
            await ws.send_json({"type": "toggle_gathering", "active": False})
            await ws.send_json({"type": "request_data", "region": "gujarat"})
            await ws.receive_json(timeout=2)

            before = server.context.state.value
            for _ in range(5):
                await server.tick_once()
                await ws.receive_json(timeout=2)

            assert server.context.state.value == before


@pytest.mark.asyncio
async def test_viewer_is_forgotten_after_disconnect() -> None:
    server = _server()
    async with TestServer(server.build_app()) as test_server, aiohttp.ClientSession() as session:
        async with session.ws_connect(test_server.make_url(PATH)) as ws:
            await ws.receive_json(timeout=2)
            assert len(server.context.viewers) == 1

        # Server side notices the close on its next read.
        for _ in range(100):
            if not server.context.viewers:
                break
            await asyncio.sleep(0.01)

        assert server.context.viewers == set()
        assert await server.tick_once() is None
