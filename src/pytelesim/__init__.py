"""pytelesim - Deterministic vehicle telemetry simulator with alerting and history."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pytelesim")
except PackageNotFoundError:
    __version__ = "0+local"
from pytelesim._random import DeterministicRandom
from pytelesim.alerts import AlertEngine, evaluate_alerts, initial_alert_state
from pytelesim.config import TelesimConfig
from pytelesim.exceptions import SampleValidationError, TelesimConfigError, TelesimError
from pytelesim.models import (
    Alert,
    AlertEngineState,
    AlertSeverity,
    EvaluateResult,
    HistoryQuery,
    HistoryResult,
    QueryError,
    RuleRuntime,
    TelemetrySample,
    TireTemps,
    Vehicle,
)
from pytelesim.pipeline import VehiclePipeline
from pytelesim.simulation import SimulationEngine
from pytelesim.storage import InMemoryTelemetryRepository

__all__ = [
    "__version__",
    "Alert",
    "AlertEngine",
    "AlertEngineState",
    "AlertSeverity",
    "DeterministicRandom",
    "EvaluateResult",
    "HistoryQuery",
    "HistoryResult",
    "InMemoryTelemetryRepository",
    "QueryError",
    "RuleRuntime",
    "SampleValidationError",
    "SimulationEngine",
    "TelemetrySample",
    "TelesimConfig",
    "TelesimConfigError",
    "TelesimError",
    "TireTemps",
    "Vehicle",
    "VehiclePipeline",
    "evaluate_alerts",
    "initial_alert_state",
]
