"""heatfeed - Live crowd heatmap feed over websockets."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("heatfeed")
except PackageNotFoundError:
    __version__ = "0+local"
from heatfeed.config import FeedConfig, ViewerConfig
from heatfeed.exceptions import (
    ContainerMissingError,
    FeedConnectionClosedError,
    FeedConnectionError,
    HeatfeedConfigError,
    HeatfeedError,
    MalformedMessageError,
    TransportUnavailableError,
)
from heatfeed.models import (
    FullUpdate,
    HeatmapUpdate,
    RequestData,
    SetCrowdIntensity,
    ToggleGathering,
    WeightedPoint,
)
from heatfeed.render import FoliumSurface, RenderSurface
from heatfeed.server import FeedContext, FeedServer
from heatfeed.state.intensity import IntensityState
from heatfeed.state.overlay import ConnectionState, HeatOverlay
from heatfeed.sync import LiveOverlaySync, ReconnectTimer
from heatfeed.viewer import ViewerContext

__all__ = [
    "__version__",
    "ConnectionState",
    "ContainerMissingError",
    "FeedConfig",
    "FeedConnectionClosedError",
    "FeedConnectionError",
    "FeedContext",
    "FeedServer",
    "FoliumSurface",
    "FullUpdate",
    "HeatOverlay",
    "HeatfeedConfigError",
    "HeatfeedError",
    "HeatmapUpdate",
    "IntensityState",
    "LiveOverlaySync",
    "MalformedMessageError",
    "ReconnectTimer",
    "RenderSurface",
    "RequestData",
    "SetCrowdIntensity",
    "ToggleGathering",
    "TransportUnavailableError",
    "ViewerConfig",
    "ViewerContext",
    "WeightedPoint",
]
