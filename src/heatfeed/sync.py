"""Live overlay sync: keeps the viewer's heat overlay in step with the feed.

Owns:
- the connection state machine (CLOSED/CONNECTING → OPEN → CLOSED)
- applying producer messages to the overlay
- falling back to static data and scheduling a reconnect on loss

Each transport event has its own handler (``handle_open``,
``handle_message``, ``handle_error``, ``handle_close``) so the machine can
be driven by synthetic events in tests; :meth:`LiveOverlaySync.connect_once`
drives it from a real aiohttp websocket.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Any, Protocol

import aiohttp

from heatfeed._redact import summarize_for_log
from heatfeed.config import ViewerConfig
from heatfeed.exceptions import FeedConnectionClosedError, FeedConnectionError, MalformedMessageError
from heatfeed.ingestion.feed import extract_points
from heatfeed.models.messages import RequestData
from heatfeed.state.overlay import ConnectionState, HeatOverlay

_logger = logging.getLogger(__name__)

CallLater = Callable[[float, Callable[[], None]], asyncio.TimerHandle]


class FeedChannel(Protocol):
    """The part of a websocket the sync writes to."""

    async def send_str(self, data: str, compress: int | None = None) -> None: ...


class ReconnectTimer:
    """A single pending retry on a fixed delay.

    Scheduling again replaces the pending retry, so at most one is ever
    outstanding.
    """

    def __init__(self, delay: float, *, call_later: CallLater | None = None) -> None:
        self.delay = delay
        self._call_later = call_later
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None and not self._handle.cancelled()

    def schedule(self, callback: Callable[[], None]) -> None:
        self.cancel()
        call_later = self._call_later or asyncio.get_running_loop().call_later

        def fire() -> None:
            self._handle = None
            callback()

        self._handle = call_later(self.delay, fire)

    def cancel(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.cancel()


class LiveOverlaySync:
    """Connection state machine feeding a :class:`HeatOverlay`."""

    def __init__(
        self,
        config: ViewerConfig,
        overlay: HeatOverlay,
        *,
        session: aiohttp.ClientSession | None = None,
        timer: ReconnectTimer | None = None,
    ) -> None:
        self._config = config
        self._overlay = overlay
        self._external_session = session is not None
        self._http_session = session
        self._timer = timer or ReconnectTimer(config.reconnect_delay)
        self._reconnect_enabled = config.reconnect_enabled
        self._state = ConnectionState.CLOSED
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._task: asyncio.Task[None] | None = None
        self._attempts = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def overlay(self) -> HeatOverlay:
        return self._overlay

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def reconnect_enabled(self) -> bool:
        return self._reconnect_enabled

    @property
    def timer(self) -> ReconnectTimer:
        return self._timer

    def disable_reconnect(self) -> None:
        """Stop retrying. An attempt already in flight is left to finish."""
        self._reconnect_enabled = False
        self._timer.cancel()

    def enable_reconnect(self) -> None:
        self._reconnect_enabled = True

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def handle_connecting(self) -> None:
        self._attempts += 1
        self._state = ConnectionState.CONNECTING
        _logger.info("Connecting to WebSocket: %s (attempt %d)", self._config.websocket_url, self._attempts)

    async def handle_open(self, channel: FeedChannel) -> None:
        self._state = ConnectionState.OPEN
        _logger.info("WebSocket connection opened successfully")
        await channel.send_str(RequestData(region=self._config.region).to_json())

    def handle_message(self, raw: str | bytes) -> bool:
        """Apply one producer frame. Returns ``True`` when the overlay changed."""
        try:
            shape, points = extract_points(raw)
        except MalformedMessageError as exc:
            _logger.warning("Discarding WebSocket message: %s raw=%s", exc, summarize_for_log(raw))
            return False

        self._overlay.replace(points)
        _logger.debug("Applied %s with %d data points", shape, len(points))
        return True

    def handle_error(self, error: BaseException | None = None) -> None:
        _logger.error("WebSocket error: %s", error)
        self._terminate()

    def handle_close(self, code: int | None = None, reason: str = "") -> None:
        _logger.info("WebSocket connection closed code=%s reason=%s", code, reason)
        self._terminate()

    def _terminate(self) -> None:
        # Error and close for one connection collapse into a single transition.
        if self._state == ConnectionState.CLOSED:
            return
        self._state = ConnectionState.CLOSED
        self._ws = None
        self._overlay.show_fallback()
        if not self._reconnect_enabled:
            _logger.info("Reconnect disabled; staying on fallback data")
            return
        _logger.info("Attempting to reconnect in %s seconds...", self._timer.delay)
        self._timer.schedule(self._retry)

    def _retry(self) -> None:
        if not self._reconnect_enabled:
            _logger.debug("Reconnect skipped: disabled")
            return
        self.start()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def start(self) -> asyncio.Task[None]:
        """Launch one connection attempt on the running loop."""
        self._task = asyncio.get_running_loop().create_task(self.connect_once())
        return self._task

    async def connect_once(self) -> None:
        """Run a single connection until it closes, driving the transitions."""
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()

        url = self._config.websocket_url
        self.handle_connecting()
        try:
            ws = await self._http_session.ws_connect(url)
        except (aiohttp.ClientError, OSError) as exc:
            self.handle_error(FeedConnectionError(f"Failed to create WebSocket connection: {exc}", url=url))
            self.handle_close(None, "connection failed")
            return

        self._ws = ws
        try:
            await self.handle_open(ws)
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self.handle_message(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    self.handle_error(FeedConnectionError(str(ws.exception()), url=url))
        except (aiohttp.ClientError, ConnectionError) as exc:
            self.handle_error(FeedConnectionError(str(exc), url=url))
        finally:
            if not ws.closed:
                await ws.close()
            self.handle_close(ws.close_code)

    async def send(self, payload: Any) -> None:
        """Send a JSON-serialisable command over the open connection.

        Raises
        ------
        FeedConnectionClosedError
            No connection is currently open.
        """
        ws = self._ws
        if ws is None or ws.closed or self._state != ConnectionState.OPEN:
            raise FeedConnectionClosedError("WebSocket is not open", url=self._config.websocket_url)
        await ws.send_json(payload)

    async def aclose(self) -> None:
        """Tear down: no more retries, close the socket and owned session."""
        self.disable_reconnect()
        ws = self._ws
        if ws is not None and not ws.closed:
            await ws.close()
        task = self._task
        self._task = None
        if task is not None and not task.done():
            # A hung handshake is cancelled by wait_for on timeout.
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(task, timeout=5.0)
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
