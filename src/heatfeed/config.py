"""Producer and viewer configuration for heatfeed."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from heatfeed._constants import (
    DEFAULT_HOST,
    DEFAULT_PATH,
    DEFAULT_PORT,
    DEFAULT_REGION,
    DEFAULT_WEBSOCKET_URL,
    RECONNECT_DELAY_SECONDS,
    TICK_INTERVAL_SECONDS,
)
from heatfeed.exceptions import HeatfeedConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(env_key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise HeatfeedConfigError(f"{env_key} must be a number, got {value!r}") from exc


def _env_int(env_key: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise HeatfeedConfigError(f"{env_key} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class FeedConfig:
    """Feed producer configuration.

    Parameters
    ----------
    host : str
        Interface the websocket server binds to.
    port : int
        TCP port of the websocket server.
    path : str
        HTTP path that upgrades to the websocket feed.
    tick_interval : float
        Seconds between simulation ticks.
    region : str
        Region name answered by ``request_data``. Matched case-insensitively.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    path: str = DEFAULT_PATH
    tick_interval: float = TICK_INTERVAL_SECONDS
    region: str = DEFAULT_REGION

    def __post_init__(self) -> None:
        if not self.path.startswith("/"):
            raise HeatfeedConfigError(f"path must start with '/', got {self.path!r}")
        if self.tick_interval <= 0:
            raise HeatfeedConfigError(f"tick_interval must be positive, got {self.tick_interval}")

    @classmethod
    def from_env(cls, **overrides: Any) -> FeedConfig:
        """Create configuration from ``HEATFEED_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        for env_key, field_name in (
            ("HEATFEED_HOST", "host"),
            ("HEATFEED_PATH", "path"),
            ("HEATFEED_REGION", "region"),
        ):
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        port_env = env.get("HEATFEED_PORT")
        if port_env is not None:
            config_kwargs["port"] = _env_int("HEATFEED_PORT", port_env)

        interval_env = env.get("HEATFEED_TICK_INTERVAL")
        if interval_env is not None:
            config_kwargs["tick_interval"] = _env_float("HEATFEED_TICK_INTERVAL", interval_env)

        config_kwargs.update(overrides)
        return cls(**config_kwargs)


@dataclasses.dataclass(frozen=True)
class ViewerConfig:
    """Feed consumer configuration.

    Parameters
    ----------
    websocket_url : str
        Feed endpoint. The single override point for the transport URL;
        read once when the viewer starts.
    region : str
        Region sent with the ``request_data`` message after connecting.
    reconnect_delay : float
        Fixed delay in seconds between a closed connection and the next attempt.
    reconnect_enabled : bool
        When false, a closed connection is not retried.
    output_path : Path or None
        HTML file the rendered map is written to. ``None`` keeps the map in memory.
    """

    websocket_url: str = DEFAULT_WEBSOCKET_URL
    region: str = DEFAULT_REGION
    reconnect_delay: float = RECONNECT_DELAY_SECONDS
    reconnect_enabled: bool = True
    output_path: Path | None = None

    def __post_init__(self) -> None:
        if not self.websocket_url.startswith(("ws://", "wss://")):
            raise HeatfeedConfigError(f"websocket_url must use ws:// or wss://, got {self.websocket_url!r}")
        if self.reconnect_delay < 0:
            raise HeatfeedConfigError(f"reconnect_delay must not be negative, got {self.reconnect_delay}")

    @classmethod
    def from_env(cls, **overrides: Any) -> ViewerConfig:
        """Create configuration from ``HEATFEED_*`` environment variables.

        Reads ``HEATFEED_WEBSOCKET_URL``, ``HEATFEED_REGION``,
        ``HEATFEED_RECONNECT_DELAY``, ``HEATFEED_RECONNECT_ENABLED`` and
        ``HEATFEED_OUTPUT``. Explicit keyword arguments override environment
        values; ``None`` overrides are ignored so CLI defaults fall through.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        url_env = env.get("HEATFEED_WEBSOCKET_URL")
        if url_env:
            config_kwargs["websocket_url"] = url_env.strip()

        region_env = env.get("HEATFEED_REGION")
        if region_env:
            config_kwargs["region"] = region_env.strip()

        delay_env = env.get("HEATFEED_RECONNECT_DELAY")
        if delay_env is not None:
            config_kwargs["reconnect_delay"] = _env_float("HEATFEED_RECONNECT_DELAY", delay_env)

        config_kwargs["reconnect_enabled"] = _env_bool(env.get("HEATFEED_RECONNECT_ENABLED"), True)

        output_env = env.get("HEATFEED_OUTPUT")
        if output_env:
            config_kwargs["output_path"] = Path(output_env)

        config_kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**config_kwargs)
