"""Command-line entry points.

``heatfeed serve`` runs the producer, ``heatfeed view`` the viewer, and
``set-intensity`` / ``toggle-gathering`` send one control message to a
running producer.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import dataclasses
import logging
import signal
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

import aiohttp
from pydantic import ValidationError

from heatfeed import __version__
from heatfeed.config import FeedConfig, ViewerConfig
from heatfeed.exceptions import HeatfeedConfigError
from heatfeed.models.messages import FeedModel, SetCrowdIntensity, ToggleGathering
from heatfeed.server import FeedServer
from heatfeed.viewer import ViewerContext

_LOG = logging.getLogger("heatfeed.cli")

DEFAULT_OUTPUT = Path("heatmap.html")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    parser = argparse.ArgumentParser(prog="heatfeed", description="Live crowd heatmap feed.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", parents=[common], help="Run the feed producer.")
    serve.add_argument("--host", default=None, help="Bind address (default 0.0.0.0).")
    serve.add_argument("--port", type=int, default=None, help="TCP port (default 8080).")
    serve.add_argument("--path", default=None, help="Websocket path (default /heatmap-updates).")
    serve.add_argument("--interval", type=float, default=None, help="Seconds between ticks (default 3).")
    serve.add_argument("--region", default=None, help="Region answered by request_data (default gujarat).")

    view = sub.add_parser("view", parents=[common], help="Run a viewer that renders the live overlay to HTML.")
    view.add_argument("--url", default=None, help="Feed URL (default ws://localhost:8080/heatmap-updates).")
    view.add_argument("--region", default=None, help="Region to request after connecting.")
    view.add_argument("--output", type=Path, default=None, help="HTML file to write (default heatmap.html).")
    view.add_argument("--reconnect-delay", type=float, default=None, help="Seconds before reconnecting.")
    view.add_argument("--no-reconnect", action="store_true", help="Stay on fallback data after a disconnect.")

    intensity = sub.add_parser(
        "set-intensity",
        parents=[common],
        help="Override the crowd intensity (clamped to 0..1).",
    )
    intensity.add_argument("value", type=float)
    intensity.add_argument("--url", default=None)

    toggle = sub.add_parser(
        "toggle-gathering",
        parents=[common],
        help="Pause or resume the gathering simulation.",
    )
    toggle.add_argument("state", choices=("on", "off"))
    toggle.add_argument("--url", default=None)

    return parser


def _install_stop_handlers(stop: Callable[[], None]) -> None:
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        # add_signal_handler is unavailable on Windows event loops.
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signum, stop)


async def _serve(config: FeedConfig) -> None:
    server = FeedServer(config)
    await server.start()
    _install_stop_handlers(lambda: asyncio.ensure_future(server.stop()))
    await server.wait_closed()


async def _view(config: ViewerConfig) -> int:
    viewer = ViewerContext(config)
    if not await viewer.start():
        return 1
    _install_stop_handlers(lambda: asyncio.ensure_future(viewer.close()))
    _LOG.info("Rendering live heatmap to %s", config.output_path)
    await viewer.wait_closed()
    return 0


async def _send_command(url: str, command: FeedModel) -> int:
    async with aiohttp.ClientSession() as session:
        try:
            async with session.ws_connect(url) as ws:
                await ws.send_str(command.to_json())
        except (aiohttp.ClientError, OSError) as exc:
            _LOG.error("Could not reach feed at %s: %s", url, exc)
            return 1
    _LOG.info("Sent %s to %s", command.to_json(), url)
    return 0


def viewer_config_from_args(args: argparse.Namespace) -> ViewerConfig:
    """Viewer settings: command-line flags, then ``HEATFEED_*``, then defaults."""
    config = ViewerConfig.from_env(
        websocket_url=getattr(args, "url", None),
        region=getattr(args, "region", None),
        reconnect_delay=getattr(args, "reconnect_delay", None),
        output_path=getattr(args, "output", None),
        reconnect_enabled=False if getattr(args, "no_reconnect", False) else None,
    )
    if args.command == "view" and config.output_path is None:
        config = dataclasses.replace(config, output_path=DEFAULT_OUTPUT)
    return config


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "serve":
            feed_overrides = {
                "host": args.host,
                "port": args.port,
                "path": args.path,
                "tick_interval": args.interval,
                "region": args.region,
            }
            config = FeedConfig.from_env(**{k: v for k, v in feed_overrides.items() if v is not None})
            asyncio.run(_serve(config))
            return 0

        viewer_config = viewer_config_from_args(args)
    except HeatfeedConfigError as exc:
        _LOG.error("Invalid configuration: %s", exc)
        return 2

    if args.command == "view":
        return asyncio.run(_view(viewer_config))

    command: FeedModel
    try:
        if args.command == "set-intensity":
            command = SetCrowdIntensity(intensity=args.value)
        else:
            command = ToggleGathering(active=args.state == "on")
    except ValidationError as exc:
        _LOG.error("Invalid command: %s", exc.errors(include_url=False))
        return 2
    return asyncio.run(_send_command(viewer_config.websocket_url, command))


def serve_main() -> int:
    return main(["serve", *sys.argv[1:]])


def view_main() -> int:
    return main(["view", *sys.argv[1:]])
