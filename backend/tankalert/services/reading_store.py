from typing import List, Optional, Callable
from datetime import datetime, timedelta
from sqlalchemy import func
from sqlalchemy.orm import Session

from tankalert.database import utcnow
from tankalert.models import Reading
from tankalert.schemas import ReadingStatistics


class ReadingStore:
    """Query interface over the append-only reading history."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    def create(self, asset_id: int, **values) -> Reading:
        reading = Reading(asset_id=asset_id, **values)
        self.db.add(reading)
        self.db.flush()
        return reading

    def find_recent_readings(self, asset_id: int, hours: float) -> List[Reading]:
        """Readings from the last `hours`, oldest first."""
        cutoff = self.clock() - timedelta(hours=hours)
        return self.db.query(Reading).filter(
            Reading.asset_id == asset_id,
            Reading.reading_at >= cutoff
        ).order_by(Reading.reading_at.asc(), Reading.id.asc()).all()

    def find_by_date_range(self, asset_id: int, start: datetime, end: datetime) -> List[Reading]:
        return self.db.query(Reading).filter(
            Reading.asset_id == asset_id,
            Reading.reading_at >= start,
            Reading.reading_at <= end
        ).order_by(Reading.reading_at.asc(), Reading.id.asc()).all()

    def find_latest(self, asset_id: int) -> Optional[Reading]:
        return self.db.query(Reading).filter(
            Reading.asset_id == asset_id
        ).order_by(Reading.reading_at.desc(), Reading.id.desc()).first()

    def count_by_asset(self, asset_id: int) -> int:
        return self.db.query(func.count(Reading.id)).filter(Reading.asset_id == asset_id).scalar() or 0

    def get_statistics(self, asset_id: int, start: datetime, end: datetime) -> ReadingStatistics:
        row = self.db.query(
            func.count(Reading.id),
            func.avg(Reading.level_percent),
            func.min(Reading.level_percent),
            func.max(Reading.level_percent),
            func.avg(Reading.battery_voltage),
            func.avg(Reading.temperature_c),
        ).filter(
            Reading.asset_id == asset_id,
            Reading.reading_at >= start,
            Reading.reading_at <= end
        ).one()

        def _round(value, digits):
            return round(float(value), digits) if value is not None else None

        return ReadingStatistics(
            reading_count=row[0] or 0,
            avg_level_percent=_round(row[1], 1),
            min_level_percent=_round(row[2], 1),
            max_level_percent=_round(row[3], 1),
            avg_battery_voltage=_round(row[4], 2),
            avg_temperature_c=_round(row[5], 1),
        )

    def detect_refill_events(
        self,
        asset_id: int,
        lookback_days: int = 30,
        threshold_percent: float = 10.0
    ) -> List[Reading]:
        """
        Find refills: a rise in fill level of at least `threshold_percent`
        between consecutive readings.

        Returns the reading at which each refill was observed, most recent first.
        """
        readings = self.find_recent_readings(asset_id, lookback_days * 24)

        refills = []
        previous = None
        for reading in readings:
            if reading.level_percent is None:
                continue
            if previous is not None and reading.level_percent - previous.level_percent >= threshold_percent:
                refills.append(reading)
            previous = reading

        refills.reverse()
        return refills
