"""Weighted heat point model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from heatfeed.ingestion.normalize import safe_float


class WeightedPoint(BaseModel):
    """A single heat sample.

    Travels on the wire as ``[lat, lng, intensity]``. Points have no
    identity; a complete list is the unit of update.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    latitude: float
    longitude: float
    intensity: float

    @model_validator(mode="before")
    @classmethod
    def _from_sequence(cls, values: Any) -> Any:
        if isinstance(values, (list, tuple)):
            if len(values) != 3:
                raise ValueError(f"expected [lat, lng, intensity], got {len(values)} items")
            lat, lng, intensity = values
            return {"latitude": lat, "longitude": lng, "intensity": intensity}
        return values

    @field_validator("latitude", "longitude", "intensity", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float:
        parsed = safe_float(value)
        if parsed is None:
            raise ValueError(f"not a number: {value!r}")
        return parsed

    def as_list(self) -> list[float]:
        return [self.latitude, self.longitude, self.intensity]


def points_to_wire(points: list[WeightedPoint]) -> list[list[float]]:
    return [point.as_list() for point in points]
