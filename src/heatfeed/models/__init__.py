"""Data models for heatfeed."""

from heatfeed.models.messages import (
    FeedModel,
    FullUpdate,
    HeatmapUpdate,
    RequestData,
    SetCrowdIntensity,
    ToggleGathering,
    ViewerCommand,
    viewer_command_adapter,
)
from heatfeed.models.points import WeightedPoint, points_to_wire

__all__ = [
    "FeedModel",
    "FullUpdate",
    "HeatmapUpdate",
    "RequestData",
    "SetCrowdIntensity",
    "ToggleGathering",
    "ViewerCommand",
    "WeightedPoint",
    "points_to_wire",
    "viewer_command_adapter",
]
