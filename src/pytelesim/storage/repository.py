"""Retention-bounded in-memory telemetry repository.

The repository is a pure function of its input sequence: eviction keys off
sample timestamps, never the wall clock, so replaying the same samples
always yields the same contents.  One writer per vehicle stream, any
number of concurrent readers; every mutation and every read happens under
one lock so a reader can never observe a half-applied append+evict.
"""

from __future__ import annotations

import base64
import binascii
import bisect
import logging
import threading
from collections.abc import Mapping
from typing import Any

from pytelesim._constants import DEFAULT_HARD_CAP, DEFAULT_RETENTION_MS
from pytelesim.config import TelesimConfig
from pytelesim.exceptions import SampleValidationError, TelesimConfigError
from pytelesim.models.history import HistoryQuery, HistoryResult, QueryError, parse_history_query
from pytelesim.models.sample import TelemetrySample, parse_sample

_logger = logging.getLogger(__name__)


def encode_cursor(offset: int) -> str:
    """Opaque token for the page starting at *offset* of a filtered set."""
    return base64.b64encode(str(offset).encode("ascii")).decode("ascii")


def decode_cursor(token: str | None) -> int:
    """Offset encoded in *token*; malformed or missing tokens mean ``0``."""
    if not token:
        return 0
    try:
        offset = int(base64.b64decode(token, validate=True).decode("ascii"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return 0
    return max(offset, 0)


class InMemoryTelemetryRepository:
    """Append-only sample store bounded by a time window and a hard cap.

    Samples are kept in non-decreasing timestamp order; samples sharing a
    timestamp keep their insertion order.
    """

    def __init__(
        self,
        *,
        retention_ms: int = DEFAULT_RETENTION_MS,
        hard_cap: int = DEFAULT_HARD_CAP,
    ) -> None:
        if retention_ms <= 0:
            raise TelesimConfigError(f"retention_ms must be positive, got {retention_ms}")
        if hard_cap <= 0:
            raise TelesimConfigError(f"hard_cap must be positive, got {hard_cap}")
        self._retention_ms = retention_ms
        self._hard_cap = hard_cap
        self._samples: list[TelemetrySample] = []
        # Parallel to _samples, for bisection.
        self._timestamps: list[int] = []
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config: TelesimConfig) -> InMemoryTelemetryRepository:
        return cls(retention_ms=config.retention_ms, hard_cap=config.hard_cap)

    @property
    def retention_ms(self) -> int:
        return self._retention_ms

    @property
    def hard_cap(self) -> int:
        return self._hard_cap

    def add(self, sample: TelemetrySample | Mapping[str, Any]) -> bool:
        """Store *sample*; invalid input is ignored.

        Returns whether the sample was accepted.  Accepted samples may be
        evicted immediately if they are already outside the retention window.
        """
        try:
            parsed = parse_sample(sample)
        except SampleValidationError as exc:
            _logger.debug("Ignoring invalid sample: %s errors=%s", exc, exc.errors)
            return False

        with self._lock:
            index = bisect.bisect_right(self._timestamps, parsed.timestamp)
            self._timestamps.insert(index, parsed.timestamp)
            self._samples.insert(index, parsed)

            excess = len(self._samples) - self._hard_cap
            if excess > 0:
                self._drop_oldest(excess)
            self._evict_expired()
        return True

    def _drop_oldest(self, count: int) -> None:
        del self._samples[:count]
        del self._timestamps[:count]

    def _evict_expired(self) -> None:
        if not self._timestamps:
            return
        cutoff = self._timestamps[-1] - self._retention_ms
        first_kept = bisect.bisect_left(self._timestamps, cutoff)
        if first_kept:
            self._drop_oldest(first_kept)

    def query(
        self,
        params: HistoryQuery | Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> HistoryResult | QueryError:
        """Time-range query with cursor pagination.

        Accepts a :class:`HistoryQuery`, a mapping (``from``/``to``/``limit``/
        ``cursor``), keyword arguments (``from_=...``), or a mix.  Invalid
        parameters yield a :class:`QueryError` instead of raising.
        """
        if isinstance(params, HistoryQuery) and not kwargs:
            query = params
        else:
            raw: dict[str, Any] = {}
            if isinstance(params, HistoryQuery):
                raw.update(params.model_dump(by_alias=True, exclude_none=True))
            elif params is not None:
                raw.update(params)
            raw.update(kwargs)
            parsed = parse_history_query(raw)
            if isinstance(parsed, QueryError):
                _logger.debug("Rejected history query %s: %s", raw, parsed.details)
                return parsed
            query = parsed

        offset = decode_cursor(query.cursor)
        with self._lock:
            low = 0 if query.from_ is None else bisect.bisect_left(self._timestamps, query.from_)
            high = len(self._timestamps) if query.to is None else bisect.bisect_left(self._timestamps, query.to)
            total = max(high - low, 0)
            start = min(offset, total)
            end = min(start + query.limit, total)
            page = self._samples[low + start : low + end]

        next_cursor = encode_cursor(end) if end < total else None
        return HistoryResult(samples=page, next_cursor=next_cursor, total_available=total)

    def latest(self) -> TelemetrySample | None:
        with self._lock:
            return self._samples[-1] if self._samples else None

    def size(self) -> int:
        with self._lock:
            return len(self._samples)

    __len__ = size

    def clear(self) -> None:
        with self._lock:
            self._samples = []
            self._timestamps = []
