"""Viewer context: map, overlay and live sync with explicit startup/teardown."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from heatfeed._constants import (
    CITY_MARKERS,
    HEAT_BLUR,
    HEAT_GRADIENT,
    HEAT_MAX_ZOOM,
    HEAT_RADIUS,
    MAP_CENTER,
    MAP_ZOOM,
    SOMNATH_LAT,
    SOMNATH_LNG,
    SOMNATH_POPUP,
    TILE_ATTRIBUTION,
    TILE_MAX_ZOOM,
    TILE_URL,
)
from heatfeed.config import ViewerConfig
from heatfeed.exceptions import ContainerMissingError, TransportUnavailableError
from heatfeed.render import FoliumSurface, RenderSurface
from heatfeed.state.overlay import HeatOverlay
from heatfeed.sync import LiveOverlaySync, ReconnectTimer

_logger = logging.getLogger(__name__)


class ViewerContext:
    """Everything one viewer owns.

    Usage::

        async with ViewerContext(ViewerConfig.from_env()) as viewer:
            if viewer.started:
                await viewer.wait_closed()
    """

    def __init__(
        self,
        config: ViewerConfig,
        surface: RenderSurface | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        timer: ReconnectTimer | None = None,
    ) -> None:
        self._config = config
        self._session = session
        self.surface: RenderSurface = surface if surface is not None else FoliumSurface(config.output_path)
        self.overlay = HeatOverlay(on_replace=self.surface.replace_heat_points)
        self.sync = LiveOverlaySync(config, self.overlay, session=session, timer=timer)
        self._started = False
        self._closed = asyncio.Event()

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> bool:
        """Draw the map, show fallback data, then open the live feed.

        Returns ``False`` (after logging why) when the map cannot be set up;
        nothing is raised.
        """
        try:
            if self._session is not None and self._session.closed:
                raise TransportUnavailableError("HTTP session is closed; cannot open the feed")
            self._draw_map()
        except (ContainerMissingError, TransportUnavailableError) as exc:
            _logger.error("Viewer initialization aborted: %s", exc)
            return False

        # Fallback first so the map never waits on the network.
        self.overlay.show_fallback()
        self.sync.start()
        self._started = True
        self._closed.clear()
        _logger.info("Heatmap initialized with WebSocket support (%s)", self._config.websocket_url)
        return True

    def _draw_map(self) -> None:
        surface = self.surface
        surface.create_map(MAP_CENTER, MAP_ZOOM)
        surface.add_tile_layer(TILE_URL, TILE_ATTRIBUTION, TILE_MAX_ZOOM)
        for name, lat, lng in CITY_MARKERS:
            surface.add_marker(lat, lng, f"<b>{name}</b><br>{lat}, {lng}")
        surface.add_marker(SOMNATH_LAT, SOMNATH_LNG, SOMNATH_POPUP)
        surface.create_heat_layer(
            radius=HEAT_RADIUS,
            blur=HEAT_BLUR,
            max_zoom=HEAT_MAX_ZOOM,
            gradient=HEAT_GRADIENT,
        )

    async def close(self) -> None:
        await self.sync.aclose()
        self._started = False
        self._closed.set()

    async def wait_closed(self) -> None:
        await self._closed.wait()

    async def __aenter__(self) -> ViewerContext:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
