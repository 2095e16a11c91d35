"""Alert rule definitions.

Two rule families:

* :class:`DurationRule`: a boolean condition that must hold continuously;
  severity escalates with how long it has held and the alert clears the
  instant the condition goes false (no hysteresis).
* :class:`LevelRule`: a value compared against warning/critical trigger
  lines; once raised, the alert only clears after the value recrosses a
  separate, looser clear line, so a value hovering at the trigger does not
  flap.

The clear lines are literal per-rule constants, not derived from a margin
formula.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pytelesim._constants import DEFAULT_MAX_RPM
from pytelesim.models.alert import AlertSeverity
from pytelesim.models.sample import TelemetrySample

if TYPE_CHECKING:
    from pytelesim.alerts.engine import Evaluation


@dataclass(frozen=True)
class DurationRule:
    id: str
    condition: Callable[[TelemetrySample], bool]
    warn_ms: int
    critical_ms: int
    message: str
    """Template with ``{seconds}`` and ``{severity}`` placeholders."""

    def severity_for(self, duration_ms: int) -> AlertSeverity | None:
        if duration_ms >= self.critical_ms:
            return AlertSeverity.CRITICAL
        if duration_ms >= self.warn_ms:
            return AlertSeverity.WARNING
        return None

    def apply(self, ev: Evaluation) -> None:
        sample = ev.sample
        runtime = ev.runtime(self.id)
        if not self.condition(sample):
            runtime.condition_active_since = None
            runtime.last_severity = None
            ev.clear(self.id)
            return

        if runtime.condition_active_since is None:
            runtime.condition_active_since = sample.timestamp
        duration_ms = sample.timestamp - runtime.condition_active_since
        severity = self.severity_for(duration_ms)
        if severity is None:
            return
        ev.upsert(self.id, severity, self.message.format(seconds=duration_ms / 1000, severity=severity.value))
        runtime.last_severity = severity


@dataclass(frozen=True)
class LevelRule:
    id: str
    metric: Callable[[TelemetrySample], float]
    warn: float
    critical: float
    clear_after_warning: float
    clear_after_critical: float
    message: str
    """Template with ``{value}`` and ``{severity}`` placeholders."""
    low_side: bool = False
    """Trigger when the value drops *below* the lines instead of above."""

    def severity_for(self, value: float) -> AlertSeverity | None:
        if self.low_side:
            if value < self.critical:
                return AlertSeverity.CRITICAL
            if value < self.warn:
                return AlertSeverity.WARNING
            return None
        if value > self.critical:
            return AlertSeverity.CRITICAL
        if value > self.warn:
            return AlertSeverity.WARNING
        return None

    def clears(self, value: float, last_severity: AlertSeverity) -> bool:
        bound = self.clear_after_critical if last_severity is AlertSeverity.CRITICAL else self.clear_after_warning
        return value > bound if self.low_side else value < bound

    def apply(self, ev: Evaluation) -> None:
        runtime = ev.runtime(self.id)
        value = self.metric(ev.sample)
        severity = self.severity_for(value)
        if severity is not None:
            ev.upsert(self.id, severity, self.message.format(value=value, severity=severity.value))
            runtime.last_severity = severity
            return

        if runtime.last_severity is None:
            return
        if self.clears(value, runtime.last_severity):
            ev.clear(self.id)
            runtime.last_severity = None
        else:
            # Inside the hysteresis band: still unresolved.
            ev.touch(self.id)


AlertRule = DurationRule | LevelRule


def default_rules(max_rpm: float = DEFAULT_MAX_RPM) -> tuple[AlertRule, ...]:
    """The fixed rule set, in evaluation order."""
    return (
        DurationRule(
            id="high-rpm",
            condition=lambda s: s.rpm / max_rpm > 0.95,
            warn_ms=5000,
            critical_ms=8000,
            message="RPM >95% for {seconds:.1f}s ({severity})",
        ),
        LevelRule(
            id="coolant-temp",
            metric=lambda s: s.coolant_c,
            warn=110,
            critical=120,
            clear_after_warning=105,
            clear_after_critical=105,
            message="Coolant {value:.0f}°C ({severity})",
        ),
        LevelRule(
            id="tire-delta",
            metric=lambda s: s.tire_temps.spread,
            warn=15,
            critical=20,
            clear_after_warning=12,
            clear_after_critical=12,
            message="Tire temp delta {value:.1f}°C ({severity})",
        ),
        LevelRule(
            id="battery-soc",
            metric=lambda s: s.state_of_charge,
            warn=15,
            critical=8,
            clear_after_warning=17,
            clear_after_critical=11,
            message="Battery SoC {value:.1f}% ({severity})",
            low_side=True,
        ),
        DurationRule(
            id="brake-throttle-overlap",
            condition=lambda s: s.throttle_pct > 20 and s.brake_pct > 20,
            warn_ms=3000,
            critical_ms=5000,
            message="Brake+Throttle overlap {seconds:.1f}s ({severity})",
        ),
    )
