"""Simulated vehicle description."""

from __future__ import annotations

from pydantic import Field, field_validator

from pytelesim._constants import DEFAULT_GEAR_RATIOS, DEFAULT_MAX_RPM, DEFAULT_VEHICLE_ID
from pytelesim.models._base import TelesimBaseModel


class Vehicle(TelesimBaseModel):
    """Static vehicle parameters consumed by the simulation engine.

    ``gear_ratios`` lists the ratios of gears ``1..N`` (final drive baked
    in); ``N`` is the top gear.  Gear ``0`` is neutral and always idles.
    """

    id: str = Field(default=DEFAULT_VEHICLE_ID, min_length=1)
    name: str = "SimCar"
    model: str = "MVP Prototype"
    max_rpm: float = Field(default=DEFAULT_MAX_RPM, gt=0)
    tire_spec: str = "Generic Sport"
    battery_spec: str = "12V Lead Acid"
    gear_ratios: tuple[float, ...] = DEFAULT_GEAR_RATIOS

    @field_validator("id")
    @classmethod
    def _normalize_id(cls, value: str) -> str:
        vehicle_id = value.strip()
        if not vehicle_id:
            raise ValueError("id must be non-empty")
        return vehicle_id

    @field_validator("gear_ratios")
    @classmethod
    def _check_gear_ratios(cls, value: tuple[float, ...]) -> tuple[float, ...]:
        if not value:
            raise ValueError("gear_ratios must list at least one forward gear")
        if any(ratio <= 0 for ratio in value):
            raise ValueError("gear ratios must be positive")
        return value

    @property
    def max_gear(self) -> int:
        return len(self.gear_ratios)

    def gear_ratio(self, gear: int) -> float:
        """Ratio for *gear* (1-based); raises ``IndexError`` outside ``1..max_gear``."""
        if not 1 <= gear <= self.max_gear:
            raise IndexError(f"gear {gear} outside 1..{self.max_gear}")
        return self.gear_ratios[gear - 1]
