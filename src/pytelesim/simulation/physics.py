"""Per-tick physics approximation.

Not racing physics: just enough inertia, drag, gearing and thermal lag to
produce smooth, bounded, plausible traces.  The order of random draws in
:func:`integrate` is part of the replay contract; reordering statements
that draw from the generator changes every trace produced from a seed.
"""

from __future__ import annotations

import math

from pytelesim._constants import (
    DOWNSHIFT_RPM,
    IDLE_RPM,
    MAX_SPEED_KPH,
    ORIGIN_LATITUDE,
    ORIGIN_LONGITUDE,
    RPM_OVERSHOOT_FACTOR,
    RPM_PER_KPH_RATIO,
    RPM_SMOOTHING,
    SECTOR_COUNT,
    TRACK_LENGTH_M,
    UPSHIFT_RPM_FACTOR,
)
from pytelesim._random import DeterministicRandom
from pytelesim.models.vehicle import Vehicle
from pytelesim.simulation.state import EngineState

# Anomaly injection: a sustained coolant spike.
ANOMALY_PROBABILITY = 0.001
ANOMALY_COOLANT_BUMP_C = 0.9
ANOMALY_MIN_TICKS = 10
ANOMALY_MAX_TICKS = 25

BRAKE_EVENT_PROBABILITY = 0.02
BRAKE_DECAY = 0.85


def clamp(value: float, low: float, high: float) -> float:
    if value < low:
        return low
    if value > high:
        return high
    return value


def approach(current: float, target: float, factor: float) -> float:
    """One step of exponential approach (``factor`` in ``(0, 1]``)."""
    return current + (target - current) * factor


def speed_to_rpm(speed_kph: float, gear: int, vehicle: Vehicle) -> float:
    """Engine speed implied by road speed in *gear* (idle in neutral)."""
    if gear <= 0:
        return IDLE_RPM
    rpm = speed_kph * vehicle.gear_ratio(gear) * RPM_PER_KPH_RATIO
    # Allow a slight overshoot transient above the limiter.
    return clamp(rpm, IDLE_RPM, vehicle.max_rpm * RPM_OVERSHOOT_FACTOR)


def track_position(distance_m: float) -> tuple[float, float]:
    """Placeholder orbit around a fixed origin; replace with real track geometry."""
    return (
        ORIGIN_LATITUDE + math.sin(distance_m / 500) * 0.01,
        ORIGIN_LONGITUDE + math.cos(distance_m / 500) * 0.01,
    )


def integrate(state: EngineState, rng: DeterministicRandom, vehicle: Vehicle, dt_ms: float) -> None:
    """Advance *state* by one tick of *dt_ms* milliseconds, in place."""
    dt_s = dt_ms / 1000

    # Driver inputs
    state.throttle_pct = clamp(state.throttle_pct + rng.approx_normal(0, 4), 5, 100)
    if rng.bernoulli(BRAKE_EVENT_PROBABILITY):
        state.brake_pct = clamp(state.brake_pct + rng.approx_normal(20, 10), 0, 90)
    else:
        state.brake_pct *= BRAKE_DECAY
    state.steering_deg = clamp(state.steering_deg + rng.approx_normal(0, 3), -45, 45)

    # Speed: throttle/brake balance minus simple drag
    accel_factor = state.throttle_pct / 100 - state.brake_pct / 70
    accel_mps2 = accel_factor * 7 - 0.012 * state.speed_kph
    state.speed_kph = clamp(state.speed_kph + accel_mps2 * dt_s * 3.6, 0, MAX_SPEED_KPH)

    # Gear selection happens before rpm is recomputed for this tick.
    target_rpm = speed_to_rpm(state.speed_kph, state.gear, vehicle)
    if target_rpm > vehicle.max_rpm * UPSHIFT_RPM_FACTOR and state.gear < vehicle.max_gear:
        state.gear += 1
    elif target_rpm < DOWNSHIFT_RPM and state.gear > 1:
        state.gear -= 1
    state.rpm = approach(state.rpm, speed_to_rpm(state.speed_kph, state.gear, vehicle), RPM_SMOOTHING)

    # Temperatures
    load_factor = state.throttle_pct / 100
    target_coolant = 75 + load_factor * 55
    target_oil = 80 + load_factor * 60
    state.coolant_c = approach(state.coolant_c, target_coolant, 0.05) + rng.approx_normal(0, 0.4)
    state.oil_c = approach(state.oil_c, target_oil, 0.04) + rng.approx_normal(0, 0.5)

    # One anomaly at a time; a new one can only arm once the cooldown is spent.
    if state.anomaly_cooldown > 0:
        state.coolant_c += ANOMALY_COOLANT_BUMP_C
        state.anomaly_cooldown -= 1
    elif rng.bernoulli(ANOMALY_PROBABILITY):
        state.anomaly_cooldown = rng.integer(ANOMALY_MIN_TICKS, ANOMALY_MAX_TICKS)

    # Battery
    drain = load_factor * 0.006 * (dt_ms / 100)
    regen = (state.brake_pct / 100) * 0.004 * (dt_ms / 100)
    state.state_of_charge = clamp(state.state_of_charge - drain + regen, 0, 100)
    state.battery_v = 12.6 + (state.state_of_charge / 100) * 0.8 + rng.approx_normal(0, 0.02)

    # Tires: fronts run slightly hotter
    base_tire = 50 + (state.speed_kph / MAX_SPEED_KPH) * 35 + load_factor * 15
    tires = state.tire_temps
    tires["FL"] = approach(tires["FL"], base_tire + rng.approx_normal(0, 1.8), 0.15)
    tires["FR"] = approach(tires["FR"], base_tire + rng.approx_normal(0, 1.8), 0.15)
    tires["RL"] = approach(tires["RL"], base_tire - 2 + rng.approx_normal(0, 1.5), 0.14)
    tires["RR"] = approach(tires["RR"], base_tire - 1 + rng.approx_normal(0, 1.5), 0.14)

    # Distance / lap / sector
    state.distance_m += (state.speed_kph / 3.6) * dt_s
    while state.distance_m >= TRACK_LENGTH_M:
        state.distance_m -= TRACK_LENGTH_M
        state.lap += 1
    sector_length = TRACK_LENGTH_M / SECTOR_COUNT
    state.sector = min(SECTOR_COUNT - 1, math.floor(state.distance_m / sector_length))
