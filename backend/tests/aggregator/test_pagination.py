"""Tests for cursor pagination."""

import pytest

from app.aggregator.errors import InvalidCursor
from app.aggregator.models import AssetRecord, Snapshot
from app.aggregator.pagination import clamp_limit, paginate, parse_cursor


def _snapshot(size: int) -> Snapshot:
    records = tuple(
        AssetRecord(
            address=f"T{i:03d}",
            name=f"Token {i}",
            ticker=f"T{i}",
            price_usd=1.0,
            price_native=0.01,
            volume_usd=float(size - i),
        )
        for i in range(size)
    )
    return Snapshot(records=records, created_at=100.0)


class TestPaginate:
    """Unit tests for paginate."""

    def test_first_page(self):
        page = paginate(_snapshot(30), cursor=None, limit=25)
        assert len(page.records) == 25
        assert page.next_cursor == "25"
        assert page.total == 30

    def test_last_page(self):
        page = paginate(_snapshot(30), cursor="25", limit=25)
        assert len(page.records) == 5
        assert page.next_cursor is None
        assert page.total == 30

    def test_defaults(self):
        page = paginate(_snapshot(30))
        assert len(page.records) == 25
        assert page.records[0].address == "T000"

    def test_exact_fit_has_no_next_cursor(self):
        page = paginate(_snapshot(25), limit=25)
        assert len(page.records) == 25
        assert page.next_cursor is None

    def test_empty_snapshot(self):
        page = paginate(_snapshot(0))
        assert page.records == ()
        assert page.next_cursor is None
        assert page.total == 0

    def test_cursor_past_end(self):
        page = paginate(_snapshot(5), cursor="40", limit=10)
        assert page.records == ()
        assert page.next_cursor is None
        assert page.total == 5

    def test_idempotent(self):
        snapshot = _snapshot(30)
        assert paginate(snapshot, "10", 7) == paginate(snapshot, "10", 7)

    def test_walk_covers_every_record_once(self):
        snapshot = _snapshot(73)
        seen = []
        cursor = None
        while True:
            page = paginate(snapshot, cursor, 10)
            seen.extend(r.address for r in page.records)
            cursor = page.next_cursor
            if cursor is None:
                break
        assert len(seen) == len(snapshot) == 73
        assert seen == [r.address for r in snapshot.records]

    def test_integer_cursor(self):
        page = paginate(_snapshot(30), cursor=10, limit=5)
        assert page.records[0].address == "T010"
        assert page.next_cursor == "15"

    def test_limit_is_clamped(self):
        snapshot = _snapshot(150)
        assert len(paginate(snapshot, limit=-5).records) == 1
        assert len(paginate(snapshot, limit=500).records) == 100


class TestParseCursor:
    """Unit tests for cursor decoding."""

    @pytest.mark.parametrize("cursor", [None, ""])
    def test_absent_cursor_is_zero(self, cursor):
        assert parse_cursor(cursor) == 0

    def test_numeric_string(self):
        assert parse_cursor("25") == 25

    @pytest.mark.parametrize("cursor", ["abc", "-1", "1.5", -3, True])
    def test_invalid_cursor(self, cursor):
        with pytest.raises(InvalidCursor):
            parse_cursor(cursor)

    def test_invalid_cursor_is_value_error(self):
        with pytest.raises(ValueError):
            parse_cursor("nope")


class TestClampLimit:
    """Unit tests for limit clamping."""

    def test_default(self):
        assert clamp_limit(None) == 25

    def test_zero_means_default(self):
        assert clamp_limit(0) == 25
        assert len(paginate(_snapshot(30), limit=0).records) == 25

    def test_bounds(self):
        assert clamp_limit(-1) == 1
        assert clamp_limit(101) == 100
        assert clamp_limit(50) == 50
