"""Per-vehicle wiring of engine, repository and alert state.

A :class:`VehiclePipeline` owns exactly one engine, one repository and one
alert state.  Nothing is process-global: simulate several vehicles by
building several pipelines.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pytelesim.alerts.engine import AlertEngine
from pytelesim.config import TelesimConfig
from pytelesim.models.alert import Alert, AlertEngineState
from pytelesim.models.sample import TelemetrySample
from pytelesim.simulation.engine import SimulationEngine
from pytelesim.storage.repository import InMemoryTelemetryRepository

_logger = logging.getLogger(__name__)


class VehiclePipeline:
    """Feeds every engine sample into the repository and the alert engine.

    Parameters
    ----------
    config : TelesimConfig or None
        Used to build whichever collaborators are not passed explicitly.
    engine, repository, alert_engine
        Optional pre-built collaborators.
    on_critical : callable or None
        Called once per alert that has just become critical (not on every
        tick while it stays critical).  Errors are logged and swallowed.
    """

    def __init__(
        self,
        config: TelesimConfig | None = None,
        *,
        engine: SimulationEngine | None = None,
        repository: InMemoryTelemetryRepository | None = None,
        alert_engine: AlertEngine | None = None,
        on_critical: Callable[[Alert], None] | None = None,
    ) -> None:
        if config is None:
            config = engine.config if engine is not None else TelesimConfig()
        self._config = config
        self.engine = engine if engine is not None else SimulationEngine(config)
        self.repository = repository if repository is not None else InMemoryTelemetryRepository.from_config(config)
        self.alert_engine = alert_engine if alert_engine is not None else AlertEngine.from_config(config)
        self._on_critical = on_critical
        self._alert_state = AlertEngine.initial_state()
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def alert_state(self) -> AlertEngineState:
        return self._alert_state

    @property
    def active_alerts(self) -> list[Alert]:
        return list(self._alert_state.active.values())

    @property
    def is_attached(self) -> bool:
        return self._unsubscribe is not None

    def attach(self) -> None:
        """Subscribe to the engine (idempotent)."""
        if self._unsubscribe is None:
            self._unsubscribe = self.engine.subscribe(self.handle)

    def detach(self) -> None:
        unsubscribe = self._unsubscribe
        self._unsubscribe = None
        if unsubscribe is not None:
            unsubscribe()

    def start(self, seed: int | None = None) -> None:
        """Attach and start the engine on the running event loop."""
        self.attach()
        self.engine.start(seed)

    def stop(self) -> None:
        self.engine.stop()

    def reset_alerts(self) -> None:
        self._alert_state = AlertEngine.initial_state()

    def handle(self, sample: TelemetrySample) -> None:
        """Persist *sample* and evaluate alerts against it."""
        self.repository.add(sample)

        result = self.alert_engine.evaluate(sample, self._alert_state)
        self._alert_state = result.to_state()

        if self._on_critical is None:
            return
        for alert in result.newly_critical:
            try:
                self._on_critical(alert)
            except Exception:
                _logger.debug("on_critical callback failed for %s", alert.id, exc_info=True)
