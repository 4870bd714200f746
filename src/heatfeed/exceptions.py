"""Custom exception hierarchy for heatfeed."""

from __future__ import annotations


class HeatfeedError(Exception):
    """Base exception for all heatfeed errors."""


class HeatfeedConfigError(HeatfeedError):
    """Invalid or missing configuration."""


class TransportUnavailableError(HeatfeedError):
    """The runtime needed to open the feed or draw the overlay is missing."""


class ContainerMissingError(HeatfeedError):
    """The render target (map container / output location) is absent."""


class MalformedMessageError(HeatfeedError):
    """A feed message could not be parsed or has an unrecognised shape."""

    def __init__(self, message: str, *, raw: str | bytes | None = None) -> None:
        self.raw = raw
        super().__init__(message)


class FeedConnectionError(HeatfeedError):
    """Transport-level websocket failure (refused, reset, protocol error)."""

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        super().__init__(message)


class FeedConnectionClosedError(FeedConnectionError):
    """The websocket was closed, normally or after an error."""

    def __init__(self, message: str, *, url: str = "", code: int | None = None) -> None:
        self.code = code
        super().__init__(message, url=url)
