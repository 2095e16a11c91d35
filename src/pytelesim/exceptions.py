"""Custom exception hierarchy for pytelesim."""

from __future__ import annotations

from typing import Any


class TelesimError(Exception):
    """Base exception for all pytelesim errors."""


class TelesimConfigError(TelesimError):
    """Invalid construction-time configuration.

    Raised for non-positive or inverted tick bounds, a non-positive
    ``max_rpm``, a malformed gear-ratio table, or non-positive
    repository limits.  These are fatal: the object is never built.
    """


class SampleValidationError(TelesimError):
    """A telemetry sample failed its shape/range invariants.

    Non-fatal.  The simulation engine drops the sample and keeps ticking;
    the repository ignores it.
    """

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        self.errors = errors or []
        super().__init__(message)
