"""Base model for pytelesim data.

Every exchanged model inherits from :class:`TelesimBaseModel` which
provides:

* ``alias_generator=to_camel`` so the camelCase wire shape
  (``vehicleId``, ``speedKph``, ...) maps to snake_case fields.
* ``frozen=True``: samples, alerts and query results cross component
  boundaries as immutable values.
* ``allow_inf_nan=False`` so a diverging physics step can never produce
  a "valid" sample.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TelesimBaseModel(BaseModel):
    """Base for immutable pytelesim models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        allow_inf_nan=False,
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump using camelCase keys (JSON-compatible)."""
        return self.model_dump(mode="json", by_alias=True)
