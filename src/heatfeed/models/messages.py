"""Websocket message models.

Producer → viewer: :class:`FullUpdate`, :class:`HeatmapUpdate`.
Viewer → producer: :class:`RequestData`, :class:`SetCrowdIntensity`,
:class:`ToggleGathering` (parsed through :data:`viewer_command_adapter`).
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_serializer
from pydantic.alias_generators import to_camel

from heatfeed.models.points import WeightedPoint, points_to_wire


class FeedModel(BaseModel):
    """Base for wire messages: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class _PointsMessage(FeedModel):
    data: list[WeightedPoint] = Field(default_factory=list)

    @field_serializer("data")
    def _serialize_points(self, points: list[WeightedPoint]) -> list[list[float]]:
        return points_to_wire(points)


class FullUpdate(_PointsMessage):
    """Complete point set, sent on connect and on ``request_data``."""

    type: Literal["full_update"] = "full_update"
    message: str | None = None


class HeatmapUpdate(_PointsMessage):
    """Periodic tick broadcast."""

    type: Literal["heatmap_update"] = "heatmap_update"
    timestamp: str
    somnath_intensity: str
    crowd_count: int


class RequestData(FeedModel):
    type: Literal["request_data"] = "request_data"
    region: str


class SetCrowdIntensity(FeedModel):
    type: Literal["set_crowd_intensity"] = "set_crowd_intensity"
    intensity: float = Field(allow_inf_nan=False)


class ToggleGathering(FeedModel):
    type: Literal["toggle_gathering"] = "toggle_gathering"
    active: bool


ViewerCommand = Annotated[
    RequestData | SetCrowdIntensity | ToggleGathering,
    Field(discriminator="type"),
]

viewer_command_adapter: TypeAdapter[RequestData | SetCrowdIntensity | ToggleGathering] = TypeAdapter(ViewerCommand)

VIEWER_COMMAND_TYPES: frozenset[str] = frozenset({"request_data", "set_crowd_intensity", "toggle_gathering"})
