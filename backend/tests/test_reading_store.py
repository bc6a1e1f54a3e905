"""Tests for tankalert.services.reading_store."""

from __future__ import annotations

from datetime import datetime

import pytest

from tankalert.services.reading_store import ReadingStore
from tests.conftest import NOW, add_reading, fixed_clock, hours_ago, make_asset


@pytest.fixture
def store(db):
    return ReadingStore(db, clock=fixed_clock)


class TestQueries:
    def test_recent_readings_oldest_first(self, db, store):
        asset = make_asset(db)
        add_reading(db, asset, hours_ago(1), level=50.0)
        add_reading(db, asset, hours_ago(10), level=55.0)
        add_reading(db, asset, hours_ago(30), level=60.0)

        readings = store.find_recent_readings(asset.id, 24)
        assert [r.level_percent for r in readings] == [55.0, 50.0]

    def test_readings_scoped_to_asset(self, db, store):
        asset = make_asset(db, serial="SN-001")
        other = make_asset(db, serial="SN-002")
        add_reading(db, asset, hours_ago(1), level=50.0)
        add_reading(db, other, hours_ago(1), level=20.0)

        assert store.count_by_asset(asset.id) == 1
        assert store.find_latest(other.id).level_percent == 20.0

    def test_find_latest(self, db, store):
        asset = make_asset(db)
        add_reading(db, asset, hours_ago(5), level=55.0)
        add_reading(db, asset, hours_ago(1), level=50.0)
        assert store.find_latest(asset.id).level_percent == 50.0

    def test_find_latest_without_history(self, db, store):
        asset = make_asset(db)
        assert store.find_latest(asset.id) is None
        assert store.count_by_asset(asset.id) == 0

    def test_find_by_date_range_inclusive(self, db, store):
        asset = make_asset(db)
        add_reading(db, asset, datetime(2026, 10, 1, 0, 0), level=80.0)
        add_reading(db, asset, datetime(2026, 10, 5, 0, 0), level=70.0)
        add_reading(db, asset, datetime(2026, 10, 9, 0, 0), level=60.0)

        readings = store.find_by_date_range(asset.id, datetime(2026, 10, 1), datetime(2026, 10, 5))
        assert [r.level_percent for r in readings] == [80.0, 70.0]

    def test_create_flushes_row(self, db, store):
        asset = make_asset(db)
        reading = store.create(asset.id, reading_at=NOW, level_percent=42.0, is_online=True)
        assert reading.id is not None

    def test_statistics(self, db, store):
        asset = make_asset(db)
        add_reading(db, asset, hours_ago(3), level=60.0, battery_voltage=3.6)
        add_reading(db, asset, hours_ago(2), level=50.0, battery_voltage=3.5)
        add_reading(db, asset, hours_ago(1), level=40.0, battery_voltage=3.4)

        stats = store.get_statistics(asset.id, hours_ago(24), NOW)
        assert stats.reading_count == 3
        assert stats.avg_level_percent == 50.0
        assert stats.min_level_percent == 40.0
        assert stats.max_level_percent == 60.0
        assert stats.avg_battery_voltage == 3.5
        assert stats.avg_temperature_c is None

    def test_statistics_empty_range(self, db, store):
        asset = make_asset(db)
        stats = store.get_statistics(asset.id, hours_ago(24), NOW)
        assert stats.reading_count == 0
        assert stats.avg_level_percent is None


class TestRefillDetection:
    def test_detects_rises_most_recent_first(self, db, store):
        asset = make_asset(db)
        levels = [60.0, 55.0, 85.0, 80.0, 78.0, 95.0]
        for i, level in enumerate(levels):
            add_reading(db, asset, hours_ago(24 * (len(levels) - i)), level=level)

        refills = store.detect_refill_events(asset.id)
        assert [r.level_percent for r in refills] == [95.0, 85.0]

    def test_small_rise_ignored(self, db, store):
        asset = make_asset(db)
        add_reading(db, asset, hours_ago(48), level=50.0)
        add_reading(db, asset, hours_ago(24), level=55.0)
        assert store.detect_refill_events(asset.id) == []

    def test_custom_threshold(self, db, store):
        asset = make_asset(db)
        add_reading(db, asset, hours_ago(48), level=50.0)
        add_reading(db, asset, hours_ago(24), level=55.0)
        assert len(store.detect_refill_events(asset.id, threshold_percent=5)) == 1

    def test_lookback_window(self, db, store):
        asset = make_asset(db)
        add_reading(db, asset, hours_ago(24 * 40), level=10.0)
        add_reading(db, asset, hours_ago(24 * 39), level=90.0)
        assert store.detect_refill_events(asset.id, lookback_days=30) == []

    def test_readings_without_level_skipped(self, db, store):
        asset = make_asset(db)
        add_reading(db, asset, hours_ago(3), level=30.0)
        add_reading(db, asset, hours_ago(2), level=None)
        add_reading(db, asset, hours_ago(1), level=70.0)
        assert [r.level_percent for r in store.detect_refill_events(asset.id)] == [70.0]
