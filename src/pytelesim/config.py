"""Simulator configuration for pytelesim."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from pytelesim._constants import (
    DEFAULT_HARD_CAP,
    DEFAULT_HISTORY_CAP,
    DEFAULT_MAX_TICK_MS,
    DEFAULT_MIN_TICK_MS,
    DEFAULT_RETENTION_MS,
    DEFAULT_SEED,
)
from pytelesim.exceptions import TelesimConfigError
from pytelesim.models.vehicle import Vehicle


def _env_value(env: Mapping[str, str], key: str, cast: type[Any]) -> Any:
    raw = env.get(key)
    if raw is None:
        return None
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise TelesimConfigError(f"{key} must be a {cast.__name__}, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class TelesimConfig:
    """Simulator configuration.

    Parameters
    ----------
    min_tick_ms : int
        Lower bound of the randomly drawn inter-tick delay.
    max_tick_ms : int
        Upper bound of the randomly drawn inter-tick delay.
    seed : int
        Seed of the deterministic random source used when ``start()`` is
        called without an explicit seed.
    retention_ms : int
        Sliding time window the repository retains, keyed off sample
        timestamps rather than wall clock.
    hard_cap : int
        Absolute maximum number of samples retained by the repository.
    history_cap : int
        Maximum number of resolved alerts kept in alert history.
    vehicle : Vehicle
        Simulated vehicle parameters (id, max rpm, gear ratios).
    """

    min_tick_ms: int = DEFAULT_MIN_TICK_MS
    max_tick_ms: int = DEFAULT_MAX_TICK_MS
    seed: int = DEFAULT_SEED
    retention_ms: int = DEFAULT_RETENTION_MS
    hard_cap: int = DEFAULT_HARD_CAP
    history_cap: int = DEFAULT_HISTORY_CAP
    vehicle: Vehicle = dataclasses.field(default_factory=Vehicle)

    def __post_init__(self) -> None:
        if not isinstance(self.vehicle, Vehicle):
            try:
                vehicle = Vehicle.model_validate(self.vehicle)
            except ValidationError as exc:
                raise TelesimConfigError(f"invalid vehicle configuration: {exc}") from exc
            object.__setattr__(self, "vehicle", vehicle)
        if self.min_tick_ms <= 0 or self.max_tick_ms <= 0:
            raise TelesimConfigError(
                f"tick bounds must be positive, got min={self.min_tick_ms} max={self.max_tick_ms}"
            )
        if self.min_tick_ms > self.max_tick_ms:
            raise TelesimConfigError(f"min_tick_ms ({self.min_tick_ms}) exceeds max_tick_ms ({self.max_tick_ms})")
        if self.retention_ms <= 0:
            raise TelesimConfigError(f"retention_ms must be positive, got {self.retention_ms}")
        if self.hard_cap <= 0:
            raise TelesimConfigError(f"hard_cap must be positive, got {self.hard_cap}")
        if self.history_cap <= 0:
            raise TelesimConfigError(f"history_cap must be positive, got {self.history_cap}")

    @classmethod
    def from_env(cls, **overrides: Any) -> TelesimConfig:
        """Create configuration from environment variables.

        Reads optional ``TELESIM_*`` variables.  Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.
            ``vehicle`` may be a :class:`Vehicle` or a dict of vehicle fields.

        Returns
        -------
        TelesimConfig
            Populated configuration.

        Raises
        ------
        TelesimConfigError
            If a variable cannot be parsed or the resulting values are invalid.
        """
        env = os.environ

        vehicle_kwargs: dict[str, Any] = {}
        _ENV_VEHICLE_MAP = {
            "TELESIM_VEHICLE_ID": ("id", str),
            "TELESIM_VEHICLE_NAME": ("name", str),
            "TELESIM_MAX_RPM": ("max_rpm", float),
        }
        for env_key, (field_name, cast) in _ENV_VEHICLE_MAP.items():
            val = _env_value(env, env_key, cast)
            if val is not None:
                vehicle_kwargs[field_name] = val

        # Allow overriding vehicle fields via a nested dict
        vehicle_overrides = overrides.pop("vehicle", None)
        if isinstance(vehicle_overrides, dict):
            vehicle_kwargs.update(vehicle_overrides)
        elif isinstance(vehicle_overrides, Vehicle):
            vehicle_kwargs = vehicle_overrides.model_dump()

        _ENV_CONFIG_MAP = {
            "TELESIM_MIN_TICK_MS": "min_tick_ms",
            "TELESIM_MAX_TICK_MS": "max_tick_ms",
            "TELESIM_SEED": "seed",
            "TELESIM_RETENTION_MS": "retention_ms",
            "TELESIM_HARD_CAP": "hard_cap",
            "TELESIM_HISTORY_CAP": "history_cap",
        }
        config_kwargs: dict[str, Any] = {"vehicle": vehicle_kwargs}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            if field_name in overrides:
                continue
            val = _env_value(env, env_key, int)
            if val is not None:
                config_kwargs[field_name] = val

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
