"""Alert evaluation engine.

:meth:`AlertEngine.evaluate` is a pure function of ``(sample, prior)``:
it copies the prior state, applies every rule in a fixed order and returns
the updated state together with the alerts that *just* became critical.
Callers own the state between calls; each vehicle (or any other
independent stream) must carry its own.
"""

from __future__ import annotations

import logging

from pytelesim._constants import DEFAULT_HISTORY_CAP, DEFAULT_MAX_RPM
from pytelesim.alerts.rules import AlertRule, default_rules
from pytelesim.config import TelesimConfig
from pytelesim.exceptions import TelesimConfigError
from pytelesim.models.alert import Alert, AlertEngineState, AlertSeverity, EvaluateResult, RuleRuntime
from pytelesim.models.sample import TelemetrySample

_logger = logging.getLogger(__name__)


class Evaluation:
    """Working copy of alert state for a single ``evaluate`` call."""

    def __init__(self, sample: TelemetrySample, prior: AlertEngineState, history_cap: int) -> None:
        self.sample = sample
        self.active: dict[str, Alert] = dict(prior.active)
        self.history: list[Alert] = list(prior.history)
        self.runtimes: dict[str, RuleRuntime] = {
            rule_id: runtime.model_copy() for rule_id, runtime in prior.runtimes.items()
        }
        self.newly_critical: list[Alert] = []
        self._history_cap = history_cap

    def runtime(self, rule_id: str) -> RuleRuntime:
        runtime = self.runtimes.get(rule_id)
        if runtime is None:
            runtime = RuleRuntime()
            self.runtimes[rule_id] = runtime
        return runtime

    def upsert(self, rule_id: str, severity: AlertSeverity, message: str) -> Alert:
        """Create or refresh the active alert for *rule_id*."""
        sample = self.sample
        existing = self.active.get(rule_id)
        if existing is None:
            alert = Alert(
                id=rule_id,
                vehicle_id=sample.vehicle_id,
                rule_id=rule_id,
                severity=severity,
                message=message,
                first_seen=sample.timestamp,
                last_seen=sample.timestamp,
                active=True,
            )
            changed = True
        else:
            changed = existing.severity != severity
            alert = existing.model_copy(
                update={"severity": severity, "message": message, "last_seen": sample.timestamp, "active": True}
            )
        self.active[rule_id] = alert

        if changed:
            _logger.debug(
                "Alert %s vehicle=%s severity=%s message=%s", rule_id, sample.vehicle_id, severity.value, message
            )
            if severity is AlertSeverity.CRITICAL:
                self.newly_critical.append(alert)
        return alert

    def touch(self, rule_id: str) -> None:
        """Refresh ``last_seen`` of an unresolved alert without changing it otherwise."""
        existing = self.active.get(rule_id)
        if existing is not None:
            self.active[rule_id] = existing.model_copy(update={"last_seen": self.sample.timestamp})

    def clear(self, rule_id: str) -> None:
        """Resolve the active alert for *rule_id* (if any) into history."""
        existing = self.active.pop(rule_id, None)
        if existing is None:
            return
        resolved = existing.model_copy(update={"active": False, "last_seen": self.sample.timestamp})
        self.history.append(resolved)
        overflow = len(self.history) - self._history_cap
        if overflow > 0:
            del self.history[:overflow]
        _logger.debug("Alert %s cleared vehicle=%s", rule_id, self.sample.vehicle_id)

    def result(self) -> EvaluateResult:
        return EvaluateResult(
            active=self.active,
            history=self.history,
            runtimes=self.runtimes,
            newly_critical=self.newly_critical,
        )


class AlertEngine:
    """Evaluates the fixed rule set against one sample at a time.

    Parameters
    ----------
    max_rpm : float
        Redline used by the sustained-high-rpm rule.
    history_cap : int
        Resolved alerts kept in history; the oldest are dropped beyond it.
    """

    def __init__(self, *, max_rpm: float = DEFAULT_MAX_RPM, history_cap: int = DEFAULT_HISTORY_CAP) -> None:
        if max_rpm <= 0:
            raise TelesimConfigError(f"max_rpm must be positive, got {max_rpm}")
        if history_cap <= 0:
            raise TelesimConfigError(f"history_cap must be positive, got {history_cap}")
        self._history_cap = history_cap
        self._rules: tuple[AlertRule, ...] = default_rules(max_rpm)

    @classmethod
    def from_config(cls, config: TelesimConfig) -> AlertEngine:
        return cls(max_rpm=config.vehicle.max_rpm, history_cap=config.history_cap)

    @property
    def rules(self) -> tuple[AlertRule, ...]:
        return self._rules

    @staticmethod
    def initial_state() -> AlertEngineState:
        return AlertEngineState()

    def evaluate(self, sample: TelemetrySample, prior: AlertEngineState | None = None) -> EvaluateResult:
        """Apply every rule to *sample*; *prior* is never mutated."""
        ev = Evaluation(sample, prior if prior is not None else AlertEngineState(), self._history_cap)
        for rule in self._rules:
            rule.apply(ev)
        return ev.result()


_DEFAULT_ENGINE = AlertEngine()


def initial_alert_state() -> AlertEngineState:
    """Empty state for a new evaluation stream."""
    return AlertEngine.initial_state()


def evaluate_alerts(sample: TelemetrySample, prior: AlertEngineState | None = None) -> EvaluateResult:
    """Evaluate *sample* with the default rule set (7000 rpm redline)."""
    return _DEFAULT_ENGINE.evaluate(sample, prior)
