from __future__ import annotations

import asyncio

import pytest

from pytelesim.config import TelesimConfig
from pytelesim.exceptions import TelesimConfigError, TelesimError
from pytelesim.models.sample import TelemetrySample
from pytelesim.models.vehicle import Vehicle
from pytelesim.simulation import engine as engine_module
from pytelesim.simulation.engine import SimulationEngine

_T0 = 1_700_000_000_000


def _fixed_clock() -> int:
    return _T0


def _engine(seed: int = 42, **config: object) -> SimulationEngine:
    return SimulationEngine(TelesimConfig(seed=seed, **config), clock=_fixed_clock)  # type: ignore[arg-type]


def _trace(samples: list[TelemetrySample]) -> list[tuple]:
    return [
        (
            s.throttle_pct,
            s.speed_kph,
            s.rpm,
            s.gear,
            s.coolant_c,
            s.oil_c,
            s.state_of_charge,
            s.tire_temps.values(),
        )
        for s in samples
    ]


# ------------------------------------------------------------------
# Construction
# ------------------------------------------------------------------


class TestConfiguration:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_tick_ms": 0},
            {"max_tick_ms": -5},
            {"min_tick_ms": 300, "max_tick_ms": 200},
            {"vehicle": {"max_rpm": 0}},
            {"vehicle": {"gear_ratios": ()}},
            {"vehicle": {"gear_ratios": (3.2, -1.0)}},
        ],
    )
    def test_invalid_configuration_is_fatal(self, kwargs: dict) -> None:
        with pytest.raises(TelesimConfigError):
            SimulationEngine(TelesimConfig(**kwargs))

    def test_defaults(self) -> None:
        engine = SimulationEngine()
        assert engine.vehicle_id == "vehicle-001"
        assert engine.config.min_tick_ms == 100
        assert engine.config.max_tick_ms == 200
        assert not engine.is_running


# ------------------------------------------------------------------
# Synchronous ticking
# ------------------------------------------------------------------


class TestDeterminism:
    def test_fixed_seed_reproduces_trace(self) -> None:
        first = _engine(42).advance(300)
        second = _engine(42).advance(300)
        assert _trace(first) == _trace(second)
        assert first == second

    def test_different_seeds_diverge(self) -> None:
        assert _trace(_engine(1).advance(50)) != _trace(_engine(2).advance(50))

    def test_reset_with_seed_replays(self) -> None:
        engine = _engine(5)
        first = engine.advance(40)
        engine.advance(17)
        engine.reset(5)
        assert engine.advance(40) == first

    def test_timestamps_follow_drawn_delays(self) -> None:
        samples = _engine(42).advance(100)
        previous = _T0
        for sample in samples:
            step = sample.timestamp - previous
            assert 100 <= step <= 201
            previous = sample.timestamp


class TestBounds:
    def test_all_samples_respect_invariants(self) -> None:
        samples = _engine(1234).advance(3000)
        assert len(samples) == 3000
        for s in samples:
            assert 0 <= s.speed_kph <= 320
            assert 0 <= s.throttle_pct <= 100
            assert 0 <= s.brake_pct <= 100
            assert 0 <= s.state_of_charge <= 100
            assert 0 <= s.gear <= 6
            assert s.rpm >= 0
            assert s.battery_v > 0
            assert s.vehicle_id == "vehicle-001"

    def test_seed_42_fifty_ticks_scenario(self) -> None:
        engine = _engine(42)
        samples = engine.advance(50)
        assert len(samples) == 50
        for s in samples:
            assert s.lap >= 0
            assert 0 <= s.sector <= 2
            assert 0 <= s.speed_kph <= 320
            assert 0 <= s.gear <= 6

    def test_vehicle_drives_laps(self) -> None:
        samples = _engine(8, min_tick_ms=500, max_tick_ms=500).advance(4000)
        laps = [s.lap for s in samples]
        assert laps == sorted(laps)
        assert laps[-1] >= 1
        assert {s.sector for s in samples} == {0, 1, 2}

    def test_throttle_floor(self) -> None:
        samples = _engine(99).advance(500)
        assert min(s.throttle_pct for s in samples) >= 5

    def test_custom_gear_table_limits_gear(self) -> None:
        vehicle = Vehicle(gear_ratios=(3.0, 2.0, 1.4))
        samples = _engine(3, vehicle=vehicle).advance(2000)
        assert max(s.gear for s in samples) <= 3


class TestListeners:
    def test_listeners_see_samples_in_order(self) -> None:
        engine = _engine()
        seen: list[int] = []
        engine.subscribe(lambda s: seen.append(s.timestamp))
        emitted = engine.advance(20)
        assert seen == [s.timestamp for s in emitted]

    def test_unsubscribe_callable(self) -> None:
        engine = _engine()
        seen: list[TelemetrySample] = []
        unsubscribe = engine.subscribe(seen.append)
        engine.advance(3)
        unsubscribe()
        engine.advance(3)
        assert len(seen) == 3

    def test_listener_detached_mid_notification_skips_in_flight_sample(self) -> None:
        engine = _engine()
        late: list[TelemetrySample] = []

        def late_listener(sample: TelemetrySample) -> None:
            late.append(sample)

        def detacher(_sample: TelemetrySample) -> None:
            engine.unsubscribe(late_listener)

        engine.subscribe(detacher)
        engine.subscribe(late_listener)
        engine.advance(5)
        assert late == []

    def test_failing_listener_does_not_break_others(self) -> None:
        engine = _engine()
        seen: list[TelemetrySample] = []

        def boom(_sample: TelemetrySample) -> None:
            raise RuntimeError("listener failure")

        engine.subscribe(boom)
        engine.subscribe(seen.append)
        assert len(engine.advance(4)) == 4
        assert len(seen) == 4

    def test_invalid_sample_dropped_and_state_kept(self, monkeypatch: pytest.MonkeyPatch) -> None:
        engine = _engine()
        seen: list[TelemetrySample] = []
        engine.subscribe(seen.append)
        monkeypatch.setattr(engine_module, "track_position", lambda _d: (123.0, 0.0))

        assert engine.advance(5) == []
        assert seen == []
        assert engine.dropped_count == 5
        assert engine.state.clock_ms > _T0

        monkeypatch.undo()
        assert len(engine.advance(2)) == 2
        assert engine.emitted_count == 2


# ------------------------------------------------------------------
# Timer-driven loop
# ------------------------------------------------------------------


def _fast_engine(seed: int = 42) -> SimulationEngine:
    return SimulationEngine(TelesimConfig(seed=seed, min_tick_ms=1, max_tick_ms=2), clock=_fixed_clock)


@pytest.mark.asyncio
async def test_start_emits_until_stop() -> None:
    engine = _fast_engine()
    samples: list[TelemetrySample] = []
    done = asyncio.Event()

    def on_sample(sample: TelemetrySample) -> None:
        samples.append(sample)
        if len(samples) >= 50:
            engine.stop()
            done.set()

    engine.subscribe(on_sample)
    engine.start(42)
    assert engine.is_running
    await asyncio.wait_for(done.wait(), timeout=5.0)
    assert not engine.is_running

    count = len(samples)
    await asyncio.sleep(0.05)
    assert len(samples) == count == 50
    for s in samples:
        assert s.lap >= 0
        assert 0 <= s.sector <= 2


@pytest.mark.asyncio
async def test_timer_loop_matches_synchronous_trace() -> None:
    engine = _fast_engine()
    samples: list[TelemetrySample] = []
    done = asyncio.Event()

    def on_sample(sample: TelemetrySample) -> None:
        samples.append(sample)
        if len(samples) == 10:
            engine.stop()
            done.set()

    engine.subscribe(on_sample)
    engine.start(7)
    await asyncio.wait_for(done.wait(), timeout=5.0)

    reference = _fast_engine(7).advance(10)
    assert samples == reference


@pytest.mark.asyncio
async def test_redundant_start_is_noop() -> None:
    engine = _fast_engine()
    engine.start(1)
    handle = engine._handle  # noqa: SLF001
    engine.start(2)
    assert engine._handle is handle  # noqa: SLF001
    engine.stop()
    assert engine._handle is None  # noqa: SLF001


@pytest.mark.asyncio
async def test_advance_refused_while_running() -> None:
    engine = _fast_engine()
    engine.start()
    try:
        with pytest.raises(TelesimError):
            engine.advance()
    finally:
        engine.stop()


def test_start_requires_event_loop() -> None:
    with pytest.raises(RuntimeError):
        _engine().start()
