"""Mutable per-vehicle simulation state."""

from __future__ import annotations

from dataclasses import dataclass, field


def _initial_tire_temps() -> dict[str, float]:
    return {"FL": 55.0, "FR": 55.0, "RL": 50.0, "RR": 50.0}


@dataclass
class EngineState:
    """Continuous physical quantities of one simulated vehicle.

    Exclusively owned by one :class:`~pytelesim.simulation.engine.SimulationEngine`
    and mutated once per tick.  ``clock_ms`` is the logical clock: the reset
    timestamp plus every drawn tick delay.
    """

    clock_ms: int
    gear: int = 1
    speed_kph: float = 0.0
    rpm: float = 1200.0
    throttle_pct: float = 10.0
    brake_pct: float = 0.0
    steering_deg: float = 0.0
    coolant_c: float = 70.0
    oil_c: float = 75.0
    battery_v: float = 13.0
    state_of_charge: float = 95.0
    tire_temps: dict[str, float] = field(default_factory=_initial_tire_temps)
    distance_m: float = 0.0
    lap: int = 0
    sector: int = 0
    anomaly_cooldown: int = 0
