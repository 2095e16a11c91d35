from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from pytelesim.models.sample import TelemetrySample

_BASE_SAMPLE: dict[str, Any] = {
    "timestamp": 0,
    "vehicle_id": "vehicle-001",
    "speed_kph": 120.5,
    "rpm": 3500,
    "gear": 3,
    "throttle_pct": 10,
    "brake_pct": 0,
    "steering_deg": -5.2,
    "coolant_c": 85,
    "oil_c": 90,
    "battery_v": 12.8,
    "state_of_charge": 85,
    "tire_temps": {"FL": 65, "FR": 65, "RL": 62, "RR": 62},
    "latitude": 37.7749,
    "longitude": -122.4194,
    "lap": 1,
    "sector": 2,
}


def build_sample(**overrides: Any) -> TelemetrySample:
    data = {**_BASE_SAMPLE, **overrides}
    return TelemetrySample.model_validate(data)


@pytest.fixture
def make_sample() -> Callable[..., TelemetrySample]:
    return build_sample
