import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tankalert.config import Settings, get_settings
from tankalert.database import utcnow
from tankalert.models import SyncLog
from tankalert.services import transformer
from tankalert.services.alert_generation import AlertGenerator
from tankalert.services.reading_store import ReadingStore
from tankalert.services.registry import RegistryService

logger = logging.getLogger(__name__)

WEBHOOK_SYNC_TYPE = "gasbot_webhook"
API_SYNC_TYPE = "gasbot_api"


@dataclass
class IngestionResult:
    total_records: int = 0
    processed_records: int = 0
    error_count: int = 0
    duration_ms: int = 0
    readings_recorded: int = 0
    alerts_triggered: int = 0
    errors: List[str] = field(default_factory=list)
    location_guids: Set[str] = field(default_factory=set)
    asset_guids: Set[str] = field(default_factory=set)

    @property
    def locations_processed(self) -> int:
        return len(self.location_guids)

    @property
    def assets_processed(self) -> int:
        return len(self.asset_guids)

    @property
    def status(self) -> str:
        if self.error_count == 0:
            return "success"
        return "partial" if self.processed_records else "error"

    def to_response(self, max_errors: int = 5) -> Dict[str, Any]:
        body = {
            "success": True,
            "message": "Webhook processed successfully",
            "stats": {
                "totalRecords": self.total_records,
                "processedRecords": self.processed_records,
                "errorCount": self.error_count,
                "duration": self.duration_ms,
            },
        }
        if self.errors:
            body["errors"] = self.errors[:max_errors]
        return body


def _site_label(raw: Any) -> str:
    if isinstance(raw, dict):
        return str(raw.get("LocationId") or raw.get("LocationGuid") or "unknown")
    return "unknown"


def _error_text(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        return f"Invalid field {location}: {first.get('msg')}"
    return str(exc)


class IngestionPipeline:
    """
    Processes a batch of Gasbot device payloads.

    Records are handled strictly in order. For each one the location and asset
    are upserted and committed, a reading is appended and the alert engine
    evaluates the new asset state. A failing record is rolled back and reported
    without stopping the batch.
    """

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.registry = RegistryService(db)
        self.readings = ReadingStore(db)
        self.alerts = AlertGenerator(
            db,
            thresholds=self.settings.alert_thresholds,
            auto_resolve=self.settings.alert_auto_resolve,
        )

    def process_batch(self, payloads: List[Any], sync_type: str = WEBHOOK_SYNC_TYPE) -> IngestionResult:
        start = time.monotonic()
        started_at = utcnow()
        result = IngestionResult(total_records=len(payloads))
        logger.info(f"Processing {len(payloads)} Gasbot record(s) via {sync_type}")

        for index, raw in enumerate(payloads):
            try:
                self._process_record(raw, result)
                result.processed_records += 1
            except Exception as e:
                self.db.rollback()
                message = f"Record {index + 1} ({_site_label(raw)}): {_error_text(e)}"
                logger.error(message)
                result.error_count += 1
                result.errors.append(message)

        result.duration_ms = int((time.monotonic() - start) * 1000)
        self._write_sync_log(sync_type, result, started_at)
        logger.info(
            f"Gasbot batch complete: {result.processed_records}/{result.total_records} processed, "
            f"{result.error_count} errors, {result.alerts_triggered} alerts in {result.duration_ms}ms"
        )
        return result

    def _process_record(self, raw: Any, result: IngestionResult) -> None:
        record = transformer.decode(raw)
        for warning in transformer.validate(record):
            logger.warning(f"{record.site_name}/{record.serial_number}: {warning}")

        location_data = transformer.location_values(record)
        asset_data = transformer.asset_values(record)
        previous = self.registry.snapshot_asset(asset_data["external_guid"])

        location = self.registry.upsert_location(location_data)
        asset = self.registry.upsert_asset(location.id, asset_data)
        self.db.commit()
        result.location_guids.add(location.external_guid)
        result.asset_guids.add(asset.external_guid)

        # Asset state is committed; a failed insert only loses this history sample
        try:
            self.readings.create(asset.id, **transformer.reading_values(record))
            self.db.commit()
            result.readings_recorded += 1
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Failed to record reading for {record.serial_number}: {e}")

        result.alerts_triggered += self.alerts.evaluate(asset, previous, record.raw)

    def _write_sync_log(self, sync_type: str, result: IngestionResult, started_at) -> None:
        try:
            self.db.add(SyncLog(
                sync_type=sync_type,
                status=result.status,
                locations_processed=result.locations_processed,
                assets_processed=result.assets_processed,
                readings_processed=result.readings_recorded,
                alerts_triggered=result.alerts_triggered,
                error_count=result.error_count,
                error_message="; ".join(result.errors[:3]) or None,
                duration_ms=result.duration_ms,
                started_at=started_at,
                completed_at=utcnow(),
            ))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to write sync log: {e}")


def record_failed_sync(db: Session, sync_type: str, error: Exception, duration_ms: int) -> None:
    """Audit entry for a batch that failed before any record was processed."""
    try:
        db.rollback()
        db.add(SyncLog(
            sync_type=sync_type,
            status="error",
            error_count=1,
            error_message=str(error),
            duration_ms=duration_ms,
            completed_at=utcnow(),
        ))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to write sync log: {e}")
