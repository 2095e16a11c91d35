"""Alert and rule-runtime models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from pytelesim.models._base import TelesimBaseModel


class AlertSeverity(StrEnum):
    WARNING = "warning"
    CRITICAL = "critical"


class Alert(TelesimBaseModel):
    """A raised (or resolved) alert for one rule on one vehicle.

    The alert ``id`` equals the rule id: a rule has at most one active
    alert per evaluation stream.
    """

    id: str
    vehicle_id: str
    rule_id: str
    severity: AlertSeverity
    message: str
    first_seen: int
    last_seen: int
    active: bool = True


class RuleRuntime(BaseModel):
    """Per-rule temporal state carried between evaluations."""

    model_config = ConfigDict(extra="forbid")

    condition_active_since: int | None = None
    last_severity: AlertSeverity | None = None


class AlertEngineState(BaseModel):
    """Everything the alert engine needs to remember for one stream.

    Never share one instance between independent streams (vehicles).
    """

    model_config = ConfigDict(extra="forbid")

    active: dict[str, Alert] = Field(default_factory=dict)
    history: list[Alert] = Field(default_factory=list)
    runtimes: dict[str, RuleRuntime] = Field(default_factory=dict)


class EvaluateResult(AlertEngineState):
    """Updated state plus alerts that just transitioned to critical."""

    newly_critical: list[Alert] = Field(default_factory=list)

    def to_state(self) -> AlertEngineState:
        """Drop ``newly_critical`` to obtain the state for the next call."""
        return AlertEngineState(
            active=dict(self.active),
            history=list(self.history),
            runtimes={rule_id: rt.model_copy() for rule_id, rt in self.runtimes.items()},
        )
