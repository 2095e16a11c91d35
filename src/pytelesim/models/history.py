"""History query parameters and results."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ConfigDict, Field, ValidationError

from pytelesim._constants import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT
from pytelesim.models._base import TelesimBaseModel
from pytelesim.models.sample import TelemetrySample


class HistoryQuery(TelesimBaseModel):
    """Time-range + cursor pagination parameters.

    ``from`` is inclusive, ``to`` exclusive (epoch ms); either may be
    omitted for an open bound.  ``cursor`` must be a token returned by a
    previous query.
    """

    model_config = ConfigDict(extra="forbid")

    from_: int | None = Field(default=None, alias="from")
    to: int | None = None
    limit: int = Field(default=DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT)
    cursor: str | None = None


class HistoryResult(TelesimBaseModel):
    samples: list[TelemetrySample] = Field(default_factory=list)
    next_cursor: str | None = None
    total_available: int = 0


class QueryError(TelesimBaseModel):
    """Structured rejection of malformed query parameters.

    Returned (never raised) so an HTTP-facing caller can map it to a
    client error.
    """

    error: str = "Invalid query parameters"
    details: list[dict[str, Any]] = Field(default_factory=list)


def parse_history_query(raw: Mapping[str, Any]) -> HistoryQuery | QueryError:
    """Validate raw query parameters without raising."""
    try:
        return HistoryQuery.model_validate(dict(raw))
    except ValidationError as exc:
        return QueryError(details=exc.errors(include_url=False, include_context=False, include_input=False))
