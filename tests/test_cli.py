from __future__ import annotations

from pathlib import Path

import pytest
from aiohttp.test_utils import unused_port

from heatfeed.cli import build_parser, main, viewer_config_from_args


def test_parser_view_defaults() -> None:
    args = build_parser().parse_args(["view"])

    assert args.command == "view"
    assert args.output is None
    assert args.no_reconnect is False
    assert args.verbose is False


def test_parser_accepts_verbose_after_subcommand() -> None:
    args = build_parser().parse_args(["serve", "-v", "--port", "9000", "--interval", "0.5"])

    assert args.verbose is True
    assert args.port == 9000
    assert args.interval == 0.5


def test_toggle_requires_on_or_off() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["toggle-gathering", "maybe"])


def test_unreachable_feed_returns_error() -> None:
    url = f"ws://127.0.0.1:{unused_port()}/heatmap-updates"

    assert main(["set-intensity", "0.8", "--url", url]) == 1


def test_non_websocket_url_is_rejected() -> None:
    assert main(["view", "--url", "http://localhost:8080/heatmap-updates"]) == 2


def test_non_finite_intensity_is_rejected() -> None:
    assert main(["set-intensity", "nan"]) == 2


def test_view_output_defaults_to_heatmap_html(monkeypatch) -> None:
    monkeypatch.delenv("HEATFEED_OUTPUT", raising=False)

    config = viewer_config_from_args(build_parser().parse_args(["view"]))

    assert config.output_path == Path("heatmap.html")


def test_view_output_from_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HEATFEED_OUTPUT", str(tmp_path / "live.html"))

    from_env = viewer_config_from_args(build_parser().parse_args(["view"]))
    from_flag = viewer_config_from_args(build_parser().parse_args(["view", "--output", "flag.html"]))

    assert from_env.output_path == tmp_path / "live.html"
    assert from_flag.output_path == Path("flag.html")


def test_commands_do_not_set_an_output(monkeypatch) -> None:
    monkeypatch.delenv("HEATFEED_OUTPUT", raising=False)

    config = viewer_config_from_args(build_parser().parse_args(["set-intensity", "0.4"]))

    assert config.output_path is None
