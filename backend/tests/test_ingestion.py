"""Tests for tankalert.services.ingestion: batch processing of device payloads."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import SQLAlchemyError

from tankalert.models import Alert, AlertType, Asset, Location, Reading, SyncLog
from tankalert.services.ingestion import IngestionPipeline, IngestionResult
from tests.conftest import make_payload


@pytest.fixture
def pipeline(db, settings):
    return IngestionPipeline(db, settings)


# ═══════════════════════════════════════════════════════════════════════════
#  Idempotent upsert
# ═══════════════════════════════════════════════════════════════════════════


class TestIdempotentUpsert:
    def test_same_payload_twice(self, db, pipeline):
        payload = make_payload()
        pipeline.process_batch([payload])
        pipeline.process_batch([payload])

        assert db.query(Location).count() == 1
        assert db.query(Asset).count() == 1
        assert db.query(Reading).count() == 2

    def test_rows_keyed_by_slug(self, db, pipeline):
        pipeline.process_batch([make_payload(site="Site A")])
        pipeline.process_batch([make_payload(site="site  a")])

        locations = db.query(Location).all()
        assert len(locations) == 1
        assert locations[0].external_guid == "location-site-a"

    def test_last_write_wins(self, db, pipeline):
        pipeline.process_batch([make_payload(battery=3.6, level=60)])
        pipeline.process_batch([make_payload(battery=3.5, level=55, litres=550)])

        asset = db.query(Asset).one()
        assert asset.battery_voltage == 3.5
        assert asset.current_level_percent == 55.0
        assert asset.current_level_liters == 550.0

    def test_asset_moves_with_new_location(self, db, pipeline):
        pipeline.process_batch([make_payload(site="Site A")])
        pipeline.process_batch([make_payload(site="Site B")])

        asset = db.query(Asset).one()
        assert asset.location.name == "Site B"
        assert db.query(Location).count() == 2

    def test_multiple_assets_one_location(self, db, pipeline):
        result = pipeline.process_batch([
            make_payload(serial="SN-001"),
            make_payload(serial="SN-002"),
        ])
        assert result.processed_records == 2
        assert db.query(Location).count() == 1
        assert db.query(Asset).count() == 2

    def test_raw_payload_retained(self, db, pipeline):
        payload = make_payload(FirmwareVersion="2.1.0")
        pipeline.process_batch([payload])
        assert db.query(Asset).one().raw_data["FirmwareVersion"] == "2.1.0"


# ═══════════════════════════════════════════════════════════════════════════
#  Per-record isolation
# ═══════════════════════════════════════════════════════════════════════════


class TestRecordIsolation:
    def test_one_valid_one_missing_serial(self, db, pipeline):
        result = pipeline.process_batch([
            make_payload(site="Site A"),
            make_payload(site="Site B", serial=None),
        ])

        assert result.total_records == 2
        assert result.processed_records == 1
        assert result.error_count == 1
        assert len(result.errors) == 1
        assert "Record 2" in result.errors[0]
        assert "Site B" in result.errors[0]
        assert db.query(Location).count() == 1

    def test_malformed_record_does_not_abort_batch(self, db, pipeline):
        result = pipeline.process_batch([
            "not an object",
            make_payload(serial=None),
            make_payload(serial="SN-003"),
        ])
        assert result.processed_records == 1
        assert result.error_count == 2
        assert result.errors[0].startswith("Record 1 (unknown)")
        assert result.errors[1].startswith("Record 2 (Site A)")
        assert db.query(Asset).one().serial_number == "SN-003"

    def test_nested_field_values_are_ingested_as_missing(self, db, pipeline):
        result = pipeline.process_batch([
            make_payload(LocationLat=[1, 2]),
            make_payload(serial="SN-002", DeviceBatteryVoltage={"nested": True}),
        ])
        assert result.processed_records == 2
        assert result.error_count == 0
        assert db.query(Location).one().latitude is None
        assert db.query(Asset).filter_by(serial_number="SN-002").one().battery_voltage is None

    def test_overflowing_epoch_is_ingested(self, db, pipeline):
        result = pipeline.process_batch([
            make_payload(AssetLastCalibratedTelemetryEpoch="99999999999999999999"),
        ])
        assert result.processed_records == 1
        assert db.query(Reading).count() == 1

    def test_reading_failure_is_not_fatal(self, db, pipeline, monkeypatch):
        def broken_create(asset_id, **values):
            raise SQLAlchemyError("readings table unavailable")

        monkeypatch.setattr(pipeline.readings, "create", broken_create)
        result = pipeline.process_batch([make_payload()])

        assert result.processed_records == 1
        assert result.error_count == 0
        assert result.readings_recorded == 0
        assert db.query(Asset).count() == 1
        assert db.query(Reading).count() == 0

    def test_empty_batch(self, pipeline):
        result = pipeline.process_batch([])
        assert result.total_records == 0
        assert result.processed_records == 0
        assert result.status == "success"


# ═══════════════════════════════════════════════════════════════════════════
#  Summary and sync log
# ═══════════════════════════════════════════════════════════════════════════


class TestSummary:
    def test_response_shape(self):
        result = IngestionResult(total_records=3, processed_records=3, duration_ms=12)
        body = result.to_response()
        assert body == {
            "success": True,
            "message": "Webhook processed successfully",
            "stats": {"totalRecords": 3, "processedRecords": 3, "errorCount": 0, "duration": 12},
        }

    def test_response_errors_bounded(self, pipeline):
        result = pipeline.process_batch([make_payload(site=f"Site {i}", serial=None) for i in range(7)])
        assert result.error_count == 7
        assert len(result.to_response(max_errors=5)["errors"]) == 5

    def test_sync_log_written(self, db, pipeline):
        pipeline.process_batch([make_payload(), make_payload(site="Site B", serial=None)])

        log = db.query(SyncLog).one()
        assert log.sync_type == "gasbot_webhook"
        assert log.status == "partial"
        assert log.assets_processed == 1
        assert log.readings_processed == 1
        assert log.error_count == 1
        assert "Site B" in log.error_message
        assert log.completed_at is not None

    def test_counts_distinct_locations_and_assets(self, db, pipeline):
        result = pipeline.process_batch([
            make_payload(serial="SN-001"),
            make_payload(serial="SN-002"),
            make_payload(serial="SN-002", level=55.0),
        ])
        assert result.locations_processed == 1
        assert result.assets_processed == 2
        assert result.readings_recorded == 3

        log = db.query(SyncLog).one()
        assert log.locations_processed == 1
        assert log.assets_processed == 2
        assert log.readings_processed == 3

    def test_sync_log_success(self, db, pipeline):
        pipeline.process_batch([make_payload()], sync_type="gasbot_api")
        log = db.query(SyncLog).one()
        assert log.sync_type == "gasbot_api"
        assert log.status == "success"
        assert log.error_message is None

    def test_all_failed_is_error_status(self, db, pipeline):
        pipeline.process_batch([make_payload(serial=None)])
        assert db.query(SyncLog).one().status == "error"


# ═══════════════════════════════════════════════════════════════════════════
#  Alert generation from the ingestion path
# ═══════════════════════════════════════════════════════════════════════════


class TestIngestionAlerts:
    def test_low_battery_alert_created(self, db, pipeline):
        result = pipeline.process_batch([make_payload(battery=3.1)])
        assert result.alerts_triggered == 1
        alert = db.query(Alert).one()
        assert alert.alert_type == AlertType.LOW_BATTERY.value
        assert alert.severity == "critical"

    def test_repeated_breach_not_duplicated(self, db, pipeline):
        pipeline.process_batch([make_payload(battery=3.1)])
        result = pipeline.process_batch([make_payload(battery=3.1)])
        assert result.alerts_triggered == 0
        assert db.query(Alert).count() == 1

    def test_offline_transition_uses_previous_state(self, db, pipeline):
        pipeline.process_batch([make_payload(online=True)])
        result = pipeline.process_batch([make_payload(online=False)])
        assert result.alerts_triggered == 1
        assert db.query(Alert).one().alert_type == AlertType.DEVICE_OFFLINE.value

    def test_first_sighting_offline_does_not_alert(self, db, pipeline):
        result = pipeline.process_batch([make_payload(online=False)])
        assert result.alerts_triggered == 0

    def test_ingestion_does_not_auto_resolve_by_default(self, db, pipeline):
        pipeline.process_batch([make_payload(battery=3.1)])
        pipeline.process_batch([make_payload(battery=3.7)])
        assert db.query(Alert).one().is_active is True
