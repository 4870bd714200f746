"""Feed producer: simulated crowd intensity pushed to websocket viewers."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Protocol

from aiohttp import WSCloseCode, WSMsgType, web
from pydantic import ValidationError

from heatfeed._redact import summarize_for_log
from heatfeed.config import FeedConfig
from heatfeed.exceptions import MalformedMessageError
from heatfeed.ingestion.normalize import parse_json
from heatfeed.models.messages import (
    VIEWER_COMMAND_TYPES,
    FullUpdate,
    HeatmapUpdate,
    RequestData,
    SetCrowdIntensity,
    ToggleGathering,
    viewer_command_adapter,
)
from heatfeed.simulation import advance_gathering, current_points
from heatfeed.state.intensity import IntensityState

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _iso_timestamp(value: datetime) -> str:
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class FeedViewer(Protocol):
    """What the producer needs from a connected viewer socket."""

    @property
    def closed(self) -> bool: ...

    async def send_str(self, data: str, compress: int | None = None) -> None: ...


class FeedContext:
    """Everything the producer mutates, in one place.

    Handlers here are synchronous and run to completion on the event loop,
    so viewers overriding the intensity never race the tick.
    """

    def __init__(
        self,
        config: FeedConfig | None = None,
        *,
        state: IntensityState | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config or FeedConfig()
        self.state = state or IntensityState()
        self.rng = rng or random.Random()
        self.viewers: set[FeedViewer] = set()
        self._clock = clock

    def snapshot(self, message: str | None = None) -> FullUpdate:
        """Current point set, background points unjittered."""
        return FullUpdate(data=current_points(self.state, self.rng), message=message)

    def welcome(self) -> FullUpdate:
        return self.snapshot(f"Initial heatmap data - Somnath Temple crowd intensity: {self.state.value:.2f}")

    def tick(self) -> HeatmapUpdate | None:
        """Advance the simulation by one step.

        Returns the broadcast payload, or ``None`` when nobody is watching
        (in which case the state is left untouched).
        """
        if not self.viewers:
            return None

        advance_gathering(self.state, self.rng)
        update = HeatmapUpdate(
            data=current_points(self.state, self.rng, jitter=True),
            timestamp=_iso_timestamp(self._clock()),
            somnath_intensity=f"{self.state.value:.3f}",
            crowd_count=self.state.crowd_count,
        )
        _logger.info(
            "Update #%d - Somnath Temple intensity: %.3f (Estimated crowd: ~%d people) - Sent to %d client(s)",
            self.state.update_count,
            self.state.value,
            update.crowd_count,
            len(self.viewers),
        )
        return update

    def handle_text(self, raw: str | bytes) -> FullUpdate | None:
        """Handle one inbound frame. Returns a reply for the sender, if any."""
        try:
            message: Any = parse_json(raw)
        except MalformedMessageError as exc:
            _logger.error("Error parsing message: %s raw=%s", exc, summarize_for_log(raw))
            return None

        _logger.debug("Received: %s", summarize_for_log(message))

        kind = message.get("type") if isinstance(message, dict) else None
        if not isinstance(kind, str) or kind not in VIEWER_COMMAND_TYPES:
            _logger.debug("Ignoring unsupported message: %s", summarize_for_log(message))
            return None

        try:
            command = viewer_command_adapter.validate_python(message)
        except ValidationError as exc:
            _logger.warning("Malformed %s message: %s", kind, exc.errors(include_url=False))
            return None
        return self.apply_command(command)

    def apply_command(self, command: RequestData | SetCrowdIntensity | ToggleGathering) -> FullUpdate | None:
        if isinstance(command, RequestData):
            if command.region.strip().lower() != self.config.region.lower():
                _logger.debug("Ignoring request_data for region %r", command.region)
                return None
            return self.snapshot(f"Somnath Temple crowd intensity: {self.state.value:.2f}")

        if isinstance(command, SetCrowdIntensity):
            self.state.set_intensity(command.intensity)
            return None

        self.state.set_gathering(command.active)
        return None

    async def broadcast(self, update: HeatmapUpdate) -> int:
        """Send *update* to every open viewer. Returns how many were reached."""
        payload = update.to_json()
        sent = 0
        for viewer in list(self.viewers):
            if viewer.closed:
                continue
            try:
                await viewer.send_str(payload)
            except ConnectionError as exc:
                _logger.debug("Skipping viewer after send failure: %s", exc)
                continue
            sent += 1
        return sent


FEED_CONTEXT_KEY = web.AppKey("feed_context", FeedContext)


class FeedServer:
    """aiohttp websocket server around a :class:`FeedContext`.

    Usage::

        async with FeedServer(FeedConfig.from_env()) as server:
            await server.wait_closed()
    """

    def __init__(self, config: FeedConfig | None = None, *, context: FeedContext | None = None) -> None:
        self._config = config or (context.config if context is not None else FeedConfig())
        self._context = context or FeedContext(self._config)
        self._ticker: asyncio.Task[None] | None = None
        self._runner: web.AppRunner | None = None
        self._closed = asyncio.Event()

    @property
    def context(self) -> FeedContext:
        return self._context

    # ------------------------------------------------------------------
    # Application wiring
    # ------------------------------------------------------------------

    def build_app(self) -> web.Application:
        app = web.Application()
        app[FEED_CONTEXT_KEY] = self._context
        app.router.add_get(self._config.path, self.handle_websocket)
        app.on_startup.append(self._on_startup)
        app.on_shutdown.append(self._on_shutdown)
        app.on_cleanup.append(self._on_cleanup)
        return app

    async def _on_startup(self, _app: web.Application) -> None:
        self._ticker = asyncio.create_task(self._tick_loop())

    async def _on_shutdown(self, _app: web.Application) -> None:
        for viewer in list(self._context.viewers):
            if isinstance(viewer, web.WebSocketResponse):
                await viewer.close(code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")

    async def _on_cleanup(self, _app: web.Application) -> None:
        ticker = self._ticker
        self._ticker = None
        if ticker is None:
            return
        ticker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await ticker

    # ------------------------------------------------------------------
    # Tick loop
    # ------------------------------------------------------------------

    async def tick_once(self) -> HeatmapUpdate | None:
        update = self._context.tick()
        if update is not None:
            await self._context.broadcast(update)
        return update

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self._config.tick_interval)
            try:
                await self.tick_once()
            except Exception:
                _logger.exception("Tick failed")

    # ------------------------------------------------------------------
    # Websocket endpoint
    # ------------------------------------------------------------------

    async def handle_websocket(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)

        context = request.app[FEED_CONTEXT_KEY]
        context.viewers.add(ws)
        _logger.info("New client connected: %s", request.remote)

        try:
            await ws.send_str(context.welcome().to_json())
            async for msg in ws:
                if msg.type == WSMsgType.TEXT:
                    reply = context.handle_text(msg.data)
                    if reply is not None and not ws.closed:
                        await ws.send_str(reply.to_json())
                elif msg.type == WSMsgType.ERROR:
                    _logger.error("WebSocket error: %s", ws.exception())
        finally:
            context.viewers.discard(ws)
            _logger.info("Client disconnected")
        return ws

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        runner = web.AppRunner(self.build_app())
        await runner.setup()
        site = web.TCPSite(runner, self._config.host, self._config.port)
        await site.start()
        self._runner = runner
        self._closed.clear()
        _logger.info(
            "WebSocket server started on ws://%s:%d%s",
            self._config.host,
            self._config.port,
            self._config.path,
        )

    async def stop(self) -> None:
        runner = self._runner
        self._runner = None
        if runner is not None:
            _logger.info("Shutting down WebSocket server...")
            await runner.cleanup()
            _logger.info("WebSocket server closed")
        self._closed.set()

    async def wait_closed(self) -> None:
        await self._closed.wait()

    async def __aenter__(self) -> FeedServer:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()
