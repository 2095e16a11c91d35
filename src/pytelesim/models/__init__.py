"""Data models exchanged between pytelesim components."""

from pytelesim.models._base import TelesimBaseModel
from pytelesim.models.alert import Alert, AlertEngineState, AlertSeverity, EvaluateResult, RuleRuntime
from pytelesim.models.history import HistoryQuery, HistoryResult, QueryError, parse_history_query
from pytelesim.models.sample import TelemetrySample, TireTemps, parse_sample
from pytelesim.models.vehicle import Vehicle

__all__ = [
    "Alert",
    "AlertEngineState",
    "AlertSeverity",
    "EvaluateResult",
    "HistoryQuery",
    "HistoryResult",
    "QueryError",
    "RuleRuntime",
    "TelemetrySample",
    "TelesimBaseModel",
    "TireTemps",
    "Vehicle",
    "parse_history_query",
    "parse_sample",
]
