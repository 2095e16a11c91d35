from __future__ import annotations

import threading

import pytest

from pytelesim.config import TelesimConfig
from pytelesim.exceptions import TelesimConfigError
from pytelesim.models.history import HistoryQuery, HistoryResult, QueryError
from pytelesim.storage.repository import InMemoryTelemetryRepository, decode_cursor, encode_cursor

from conftest import build_sample


def _filled(*timestamps: int, **kwargs: int) -> InMemoryTelemetryRepository:
    repo = InMemoryTelemetryRepository(**kwargs)
    for ts in timestamps:
        assert repo.add(build_sample(timestamp=ts))
    return repo


def _ok(result: HistoryResult | QueryError) -> HistoryResult:
    assert isinstance(result, HistoryResult), result
    return result


class TestConstruction:
    @pytest.mark.parametrize("kwargs", [{"retention_ms": 0}, {"hard_cap": 0}, {"hard_cap": -1}])
    def test_non_positive_bounds_rejected(self, kwargs: dict) -> None:
        with pytest.raises(TelesimConfigError):
            InMemoryTelemetryRepository(**kwargs)

    def test_from_config(self) -> None:
        repo = InMemoryTelemetryRepository.from_config(TelesimConfig(retention_ms=1234, hard_cap=7))
        assert repo.retention_ms == 1234
        assert repo.hard_cap == 7


class TestAdd:
    def test_retention_window_keys_off_sample_time(self) -> None:
        repo = _filled(0, 500, 1500, retention_ms=1000)
        assert repo.size() == 2
        samples = _ok(repo.query()).samples
        assert [s.timestamp for s in samples] == [500, 1500]

    def test_sample_on_cutoff_is_kept(self) -> None:
        repo = _filled(0, 1000, retention_ms=1000)
        assert len(repo) == 2

    def test_hard_cap_drops_oldest(self) -> None:
        repo = _filled(*range(0, 100, 10), hard_cap=4)
        assert [s.timestamp for s in _ok(repo.query()).samples] == [60, 70, 80, 90]

    def test_invalid_sample_ignored(self) -> None:
        repo = InMemoryTelemetryRepository()
        bad = build_sample().to_wire()
        bad["stateOfCharge"] = 150
        assert repo.add(bad) is False
        assert repo.add({"timestamp": 5}) is False
        assert repo.size() == 0

    def test_accepts_wire_mapping(self) -> None:
        repo = InMemoryTelemetryRepository()
        assert repo.add(build_sample(timestamp=42).to_wire())
        latest = repo.latest()
        assert latest is not None
        assert latest.timestamp == 42
        assert latest.tire_temps.fl == 65

    def test_out_of_order_samples_are_sorted(self) -> None:
        repo = _filled(300, 100, 200)
        assert [s.timestamp for s in _ok(repo.query()).samples] == [100, 200, 300]

    def test_equal_timestamps_keep_insertion_order(self) -> None:
        repo = InMemoryTelemetryRepository()
        repo.add(build_sample(timestamp=10, rpm=1000))
        repo.add(build_sample(timestamp=10, rpm=2000))
        repo.add(build_sample(timestamp=5, rpm=3000))
        assert [s.rpm for s in _ok(repo.query()).samples] == [3000, 1000, 2000]

    def test_clear(self) -> None:
        repo = _filled(1, 2, 3)
        repo.clear()
        assert repo.size() == 0
        assert repo.latest() is None
        assert _ok(repo.query()).total_available == 0


class TestQuery:
    def test_limit_one_walks_pages(self) -> None:
        repo = _filled(100, 200, 300)

        first = _ok(repo.query(limit=1))
        assert [s.timestamp for s in first.samples] == [100]
        assert first.total_available == 3
        assert first.next_cursor is not None

        second = _ok(repo.query(limit=1, cursor=first.next_cursor))
        assert [s.timestamp for s in second.samples] == [200]
        assert second.next_cursor is not None

        third = _ok(repo.query(limit=1, cursor=second.next_cursor))
        assert [s.timestamp for s in third.samples] == [300]
        assert third.next_cursor is None

        past_end = _ok(repo.query(limit=1, cursor=encode_cursor(3)))
        assert past_end.samples == []
        assert past_end.next_cursor is None
        assert past_end.total_available == 3

    def test_pagination_covers_every_sample_once(self) -> None:
        timestamps = list(range(0, 2500, 5))
        repo = _filled(*timestamps)
        seen: list[int] = []
        cursor: str | None = None
        while True:
            page = _ok(repo.query({"limit": 37, "cursor": cursor}))
            seen.extend(s.timestamp for s in page.samples)
            if page.next_cursor is None:
                break
            cursor = page.next_cursor
        assert seen == timestamps

    def test_from_inclusive_to_exclusive(self) -> None:
        repo = _filled(100, 200, 300, 400)
        result = _ok(repo.query({"from": 200, "to": 400}))
        assert [s.timestamp for s in result.samples] == [200, 300]
        assert result.total_available == 2

    def test_from_keyword_alias(self) -> None:
        repo = _filled(100, 200, 300)
        assert [s.timestamp for s in _ok(repo.query(from_=300)).samples] == [300]

    def test_accepts_query_model(self) -> None:
        repo = _filled(100, 200, 300)
        result = _ok(repo.query(HistoryQuery(to=200)))
        assert [s.timestamp for s in result.samples] == [100]

    def test_empty_range(self) -> None:
        repo = _filled(100, 200)
        result = _ok(repo.query({"from": 500, "to": 100}))
        assert result.samples == []
        assert result.total_available == 0
        assert result.next_cursor is None

    def test_default_limit(self) -> None:
        repo = _filled(*range(250))
        result = _ok(repo.query())
        assert len(result.samples) == 200
        assert result.next_cursor == encode_cursor(200)

    def test_string_parameters_are_coerced(self) -> None:
        repo = _filled(100, 200, 300)
        result = _ok(repo.query({"from": "150", "limit": "1"}))
        assert [s.timestamp for s in result.samples] == [200]

    @pytest.mark.parametrize(
        "params",
        [{"limit": 0}, {"limit": 501}, {"limit": "abc"}, {"from": "soon"}, {"unexpected": 1}],
    )
    def test_invalid_parameters_return_query_error(self, params: dict) -> None:
        result = _filled(1).query(params)
        assert isinstance(result, QueryError)
        assert result.error == "Invalid query parameters"
        assert result.details

    def test_malformed_cursor_starts_from_beginning(self) -> None:
        repo = _filled(1, 2, 3)
        result = _ok(repo.query(cursor="%%% not a cursor %%%"))
        assert [s.timestamp for s in result.samples] == [1, 2, 3]


class TestCursor:
    def test_roundtrip(self) -> None:
        assert decode_cursor(encode_cursor(17)) == 17

    @pytest.mark.parametrize("token", [None, "", "!!", encode_cursor(-4), "YWJj"])
    def test_malformed_tokens_decode_to_zero(self, token: str | None) -> None:
        assert decode_cursor(token) == 0


def test_concurrent_readers_see_consistent_snapshots() -> None:
    repo = InMemoryTelemetryRepository(retention_ms=500, hard_cap=300)
    stop = threading.Event()
    failures: list[str] = []

    def reader() -> None:
        while not stop.is_set():
            result = repo.query(limit=500)
            if not isinstance(result, HistoryResult):
                failures.append("query rejected")
                return
            stamps = [s.timestamp for s in result.samples]
            if stamps != sorted(stamps):
                failures.append("unordered page")
            if stamps and stamps[-1] - stamps[0] > 500:
                failures.append("retention violated")
            if len(stamps) > 300:
                failures.append("cap violated")

    readers = [threading.Thread(target=reader) for _ in range(4)]
    for thread in readers:
        thread.start()
    try:
        for ts in range(5000):
            repo.add(build_sample(timestamp=ts))
    finally:
        stop.set()
        for thread in readers:
            thread.join(timeout=5)

    assert failures == []
    assert repo.size() == 300
