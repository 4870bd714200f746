from __future__ import annotations

from heatfeed._redact import summarize_for_log


def test_summarize_truncates_long_strings() -> None:
    long_value = "x" * 600
    summary = summarize_for_log({"value": long_value}, max_string=10)
    assert summary["value"].startswith("x" * 10)
    assert "<truncated>" in summary["value"]


def test_summarize_caps_point_lists() -> None:
    message = {"type": "full_update", "data": [[20.0, 70.0, 0.5]] * 40}

    summary = summarize_for_log(message, max_items=3)

    assert summary["type"] == "full_update"
    assert summary["data"][:3] == [[20.0, 70.0, 0.5]] * 3
    assert summary["data"][-1] == "<37 more>"


def test_summarize_describes_bytes() -> None:
    assert summarize_for_log(b"\x00" * 12) == "<bytes:12b>"
