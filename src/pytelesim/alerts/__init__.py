"""Alert evaluation layer."""

from pytelesim.alerts.engine import AlertEngine, Evaluation, evaluate_alerts, initial_alert_state
from pytelesim.alerts.rules import AlertRule, DurationRule, LevelRule, default_rules

__all__ = [
    "AlertEngine",
    "AlertRule",
    "DurationRule",
    "Evaluation",
    "LevelRule",
    "default_rules",
    "evaluate_alerts",
    "initial_alert_state",
]
