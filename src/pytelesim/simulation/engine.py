"""Deterministic single-vehicle simulation engine.

The engine owns one vehicle's :class:`EngineState`, advances it once per
tick and hands each validated :class:`TelemetrySample` to its listeners.
Ticks are scheduled on an asyncio event loop with a delay that is itself
drawn from the seeded random source, so the whole sample stream
(timestamps included, given a fixed clock) is a pure function of the seed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import replace

from pytelesim._random import DeterministicRandom
from pytelesim.config import TelesimConfig
from pytelesim.exceptions import SampleValidationError, TelesimError
from pytelesim.models.sample import TelemetrySample, parse_sample
from pytelesim.simulation.physics import integrate, track_position
from pytelesim.simulation.state import EngineState

_logger = logging.getLogger(__name__)

SampleListener = Callable[[TelemetrySample], None]


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class SimulationEngine:
    """Tick-driven telemetry generator for one vehicle.

    Usage::

        engine = SimulationEngine(TelesimConfig(seed=42))
        engine.subscribe(repository.add)
        engine.start()      # inside a running event loop
        ...
        engine.stop()

    Outside an event loop, :meth:`advance` runs ticks synchronously with
    the same draw order as the timer-driven loop.
    """

    def __init__(
        self,
        config: TelesimConfig | None = None,
        *,
        clock: Callable[[], int] = _now_ms,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._config = config or TelesimConfig()
        self._vehicle = self._config.vehicle
        self._clock = clock
        self._loop = loop
        self._rng = DeterministicRandom(self._config.seed)
        self._state = EngineState(clock_ms=self._clock())
        self._running = False
        self._handle: asyncio.TimerHandle | None = None
        self._listeners: list[SampleListener] = []
        self._emitted = 0
        self._dropped = 0

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> TelesimConfig:
        return self._config

    @property
    def vehicle_id(self) -> str:
        return self._vehicle.id

    @property
    def is_running(self) -> bool:
        """Whether the timer-driven tick loop is active."""
        return self._running

    @property
    def state(self) -> EngineState:
        """A copy of the current internal state."""
        return replace(self._state, tire_temps=dict(self._state.tire_temps))

    @property
    def emitted_count(self) -> int:
        return self._emitted

    @property
    def dropped_count(self) -> int:
        """Samples generated but dropped for failing validation."""
        return self._dropped

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(self, listener: SampleListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(listener)

        return _unsubscribe

    def unsubscribe(self, listener: SampleListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self, seed: int | None = None) -> None:
        """Restore the initial state, reseeding when *seed* is given."""
        if seed is not None:
            self._rng.reseed(seed)
        self._state = EngineState(clock_ms=self._clock())

    def start(self, seed: int | None = None) -> None:
        """Reset state and begin ticking on the running event loop.

        A no-op while already running.
        """
        if self._running:
            return
        loop = self._loop or asyncio.get_running_loop()
        self._loop = loop
        self.reset(seed)
        self._running = True
        _logger.debug("Simulation started vehicle=%s seed=%s", self._vehicle.id, self._rng.seed)
        self._schedule_next()

    def stop(self) -> None:
        """Cancel the pending tick.  An in-flight tick still completes."""
        handle = self._handle
        self._handle = None
        was_running = self._running
        self._running = False
        if handle is not None:
            handle.cancel()
        if was_running:
            _logger.debug(
                "Simulation stopped vehicle=%s emitted=%d dropped=%d",
                self._vehicle.id,
                self._emitted,
                self._dropped,
            )

    def advance(self, ticks: int = 1) -> list[TelemetrySample]:
        """Run *ticks* ticks synchronously and return the emitted samples.

        Listeners are notified exactly as in the timer-driven loop.

        Raises
        ------
        TelesimError
            If the timer-driven loop is running.
        """
        if self._running:
            raise TelesimError("advance() cannot be used while the engine is running")
        emitted: list[TelemetrySample] = []
        for _ in range(ticks):
            sample = self._tick(self._draw_delay())
            if sample is not None:
                emitted.append(sample)
        return emitted

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _draw_delay(self) -> int:
        return round(self._rng.uniform(self._config.min_tick_ms, self._config.max_tick_ms + 0.999))

    def _schedule_next(self) -> None:
        if not self._running or self._loop is None:
            return
        delay_ms = self._draw_delay()
        self._handle = self._loop.call_later(delay_ms / 1000, self._on_timer, delay_ms)

    def _on_timer(self, delay_ms: int) -> None:
        self._handle = None
        if not self._running:
            return
        self._tick(delay_ms)
        # A listener may have stopped (and restarted) the engine mid-tick.
        if self._running and self._handle is None:
            self._schedule_next()

    def _tick(self, dt_ms: int) -> TelemetrySample | None:
        state = self._state
        state.clock_ms += dt_ms
        integrate(state, self._rng, self._vehicle, dt_ms)

        try:
            sample = self._build_sample()
        except SampleValidationError as exc:
            self._dropped += 1
            _logger.debug("Dropping invalid sample vehicle=%s errors=%s", self._vehicle.id, exc.errors)
            return None

        self._emitted += 1
        self._emit(sample)
        return sample

    def _build_sample(self) -> TelemetrySample:
        state = self._state
        latitude, longitude = track_position(state.distance_m)
        tires = state.tire_temps
        sample = parse_sample(
            {
                "timestamp": state.clock_ms,
                "vehicle_id": self._vehicle.id,
                "speed_kph": round(state.speed_kph, 2),
                "rpm": round(state.rpm),
                "gear": state.gear,
                "throttle_pct": round(state.throttle_pct, 2),
                "brake_pct": round(state.brake_pct, 2),
                "steering_deg": round(state.steering_deg, 2),
                "coolant_c": round(state.coolant_c, 2),
                "oil_c": round(state.oil_c, 2),
                "battery_v": round(state.battery_v, 2),
                "state_of_charge": round(state.state_of_charge, 2),
                "tire_temps": {corner: round(tires[corner], 1) for corner in ("FL", "FR", "RL", "RR")},
                "latitude": latitude,
                "longitude": longitude,
                "lap": state.lap,
                "sector": state.sector,
            }
        )
        if sample.gear > self._vehicle.max_gear:
            raise SampleValidationError(f"gear {sample.gear} exceeds top gear {self._vehicle.max_gear}")
        return sample

    def _emit(self, sample: TelemetrySample) -> None:
        for listener in list(self._listeners):
            # Detached by an earlier listener during this delivery.
            if listener not in self._listeners:
                continue
            try:
                listener(sample)
            except Exception:
                _logger.debug("Sample listener failed", exc_info=True)
