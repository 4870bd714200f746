"""Rendering surface for the viewer.

The overlay sync only talks to :class:`RenderSurface`; :class:`FoliumSurface`
is the stock implementation that writes a Leaflet page with folium.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import folium
from folium.plugins import HeatMap

from heatfeed.exceptions import ContainerMissingError
from heatfeed.models.points import WeightedPoint, points_to_wire

_logger = logging.getLogger(__name__)


class RenderSurface(Protocol):
    """Black-box mapping surface the viewer draws on."""

    def create_map(self, center: tuple[float, float], zoom: int) -> None: ...

    def add_tile_layer(self, url: str, attribution: str, max_zoom: int) -> None: ...

    def add_marker(self, lat: float, lng: float, popup: str) -> None: ...

    def create_heat_layer(
        self,
        *,
        radius: int,
        blur: int,
        max_zoom: int,
        gradient: Mapping[float, str],
    ) -> None: ...

    def replace_heat_points(self, points: Sequence[WeightedPoint]) -> None: ...


@dataclass(frozen=True)
class _TileLayer:
    url: str
    attribution: str
    max_zoom: int


@dataclass(frozen=True)
class _Marker:
    lat: float
    lng: float
    popup: str


@dataclass(frozen=True)
class _HeatOptions:
    radius: int
    blur: int
    max_zoom: int
    gradient: dict[float, str] = field(default_factory=dict)


class FoliumSurface:
    """Leaflet page built with folium.

    folium maps are static documents, so the page is rebuilt from the
    recorded layers whenever the heat points change and, when
    ``output_path`` is set, written to disk.
    """

    def __init__(self, output_path: Path | None = None) -> None:
        self._output_path = output_path
        self._center: tuple[float, float] | None = None
        self._zoom = 0
        self._tiles: list[_TileLayer] = []
        self._markers: list[_Marker] = []
        self._heat: _HeatOptions | None = None
        self._points: list[list[float]] = []

    @property
    def output_path(self) -> Path | None:
        return self._output_path

    @property
    def heat_points(self) -> list[list[float]]:
        return list(self._points)

    def create_map(self, center: tuple[float, float], zoom: int) -> None:
        if self._output_path is not None and not self._output_path.parent.is_dir():
            raise ContainerMissingError(f"Map container not found: {self._output_path.parent} does not exist")
        self._center = center
        self._zoom = zoom

    def add_tile_layer(self, url: str, attribution: str, max_zoom: int) -> None:
        self._tiles.append(_TileLayer(url=url, attribution=attribution, max_zoom=max_zoom))

    def add_marker(self, lat: float, lng: float, popup: str) -> None:
        self._markers.append(_Marker(lat=lat, lng=lng, popup=popup))

    def create_heat_layer(
        self,
        *,
        radius: int,
        blur: int,
        max_zoom: int,
        gradient: Mapping[float, str],
    ) -> None:
        self._heat = _HeatOptions(radius=radius, blur=blur, max_zoom=max_zoom, gradient=dict(gradient))

    def replace_heat_points(self, points: Sequence[WeightedPoint]) -> None:
        self._points = points_to_wire(list(points))
        if self._output_path is not None:
            self.save(self._output_path)

    def build_map(self) -> folium.Map:
        if self._center is None:
            raise ContainerMissingError("create_map() must be called before rendering")

        fmap = folium.Map(location=list(self._center), zoom_start=self._zoom, tiles=None, control_scale=True)
        for tile in self._tiles:
            folium.TileLayer(
                tiles=tile.url,
                attr=tile.attribution,
                max_zoom=tile.max_zoom,
                name="OpenStreetMap",
            ).add_to(fmap)
        for marker in self._markers:
            folium.Marker(
                location=[marker.lat, marker.lng],
                popup=folium.Popup(marker.popup, max_width=320),
            ).add_to(fmap)
        if self._heat is not None and self._points:
            HeatMap(
                self._points,
                name="Crowd intensity",
                radius=self._heat.radius,
                blur=self._heat.blur,
                max_zoom=self._heat.max_zoom,
                gradient=self._heat.gradient,
            ).add_to(fmap)
        return fmap

    def save(self, path: Path) -> None:
        self.build_map().save(str(path))
        _logger.debug("Map written to %s (%d heat points)", path, len(self._points))
