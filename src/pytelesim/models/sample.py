"""Telemetry sample model.

A :class:`TelemetrySample` is one immutable reading of one vehicle at one
point in time.  Only the simulation engine produces them; every other
component reads them.  Range invariants are enforced at construction:
invalid data raises :class:`pydantic.ValidationError`.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, ValidationError

from pytelesim.exceptions import SampleValidationError
from pytelesim.models._base import TelesimBaseModel


class TireTemps(TelesimBaseModel):
    """Per-corner tire temperatures in °C."""

    fl: float = Field(alias="FL")
    fr: float = Field(alias="FR")
    rl: float = Field(alias="RL")
    rr: float = Field(alias="RR")

    def values(self) -> tuple[float, float, float, float]:
        return (self.fl, self.fr, self.rl, self.rr)

    @property
    def spread(self) -> float:
        """Hottest minus coldest corner."""
        temps = self.values()
        return max(temps) - min(temps)


class TelemetrySample(TelesimBaseModel):
    """One tick worth of vehicle telemetry."""

    timestamp: int = Field(..., ge=0, description="Monotonic epoch milliseconds")
    vehicle_id: str = Field(..., min_length=1)
    speed_kph: float = Field(..., ge=0)
    rpm: float = Field(..., ge=0)
    gear: int = Field(..., ge=0)
    throttle_pct: float = Field(..., ge=0, le=100)
    brake_pct: float = Field(..., ge=0, le=100)
    steering_deg: float = Field(..., ge=-180, le=180)
    coolant_c: float
    oil_c: float
    battery_v: float = Field(..., gt=0)
    state_of_charge: float = Field(..., ge=0, le=100)
    tire_temps: TireTemps
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    lap: int = Field(..., ge=0)
    sector: int = Field(..., ge=0)


def parse_sample(value: Any) -> TelemetrySample:
    """Coerce *value* (model or mapping) into a validated sample.

    Raises :class:`SampleValidationError` with the pydantic error list when
    the input does not satisfy the sample invariants.
    """
    if isinstance(value, TelemetrySample):
        return value
    try:
        return TelemetrySample.model_validate(value)
    except ValidationError as exc:
        raise SampleValidationError(
            f"invalid telemetry sample: {exc.error_count()} error(s)",
            errors=exc.errors(include_url=False),
        ) from exc
