import logging
from typing import List, Optional
import numpy as np
from sqlalchemy.orm import Session

from tankalert.database import utcnow
from tankalert.models import Asset, Reading
from tankalert.schemas.analytics import ConsumptionEstimate
from tankalert.services.reading_store import ReadingStore

logger = logging.getLogger(__name__)

REFILL_JUMP_PERCENT = 10.0
MAX_DAYS_REMAINING = 365
MIN_POINTS = 3


class ConsumptionCalculator:
    """
    Estimates daily consumption by least-squares regression of tank level
    against time, independent of the figures the platform reports.
    """

    def __init__(self, db: Session, reading_store: Optional[ReadingStore] = None):
        self.db = db
        self.readings = reading_store or ReadingStore(db)

    def calculate(self, asset: Asset, days: int = 7) -> ConsumptionEstimate:
        readings = self._since_last_refill(self.readings.find_recent_readings(asset.id, days * 24))
        empty = ConsumptionEstimate(asset_id=asset.id, data_points=len(readings))
        if len(readings) < MIN_POINTS:
            return empty

        capacity = asset.capacity_liters or 0
        percents = [r.level_percent for r in readings]

        if self._percent_reliable(percents):
            method = "percent"
            points = [(r.reading_at, r.level_percent or 0) for r in readings]
        elif capacity > 0 and self._litres_reliable([r.level_liters for r in readings]):
            method = "litres"
            points = [(r.reading_at, r.level_liters) for r in readings if r.level_liters is not None]
        else:
            logger.info(f"No reliable level data for asset {asset.id}")
            return empty

        start = points[0][0]
        x = np.array([(ts - start).total_seconds() / 86400 for ts, _ in points])
        y = np.array([value for _, value in points], dtype=float)
        if np.ptp(x) == 0:
            return empty

        slope, r_squared = self._fit(x, y)
        # Level falls as fuel is used; a rising fit means no measurable consumption
        rate = max(0.0, -slope)

        if method == "percent":
            daily_pct = rate
            daily_litres = rate / 100 * capacity if capacity > 0 else None
            current = asset.current_level_percent if asset.current_level_percent is not None else y[-1]
            days_remaining = current / rate if rate > 0.1 else None
        else:
            daily_litres = rate
            daily_pct = rate / capacity * 100
            current = y[-1]
            days_remaining = current / rate if rate > 0 and current > 0 else None

        if days_remaining is not None:
            days_remaining = int(round(min(MAX_DAYS_REMAINING, max(0.0, days_remaining))))

        return ConsumptionEstimate(
            asset_id=asset.id,
            daily_consumption_liters=round(daily_litres, 1) if daily_litres is not None else None,
            daily_consumption_percent=round(daily_pct, 2),
            days_remaining=days_remaining,
            trend=self._trend(x, y),
            confidence=self._confidence(len(points), r_squared, days),
            data_points=len(points),
            r_squared=round(r_squared, 3),
            method=method,
        )

    def update_asset(self, asset: Asset, days: int = 7) -> ConsumptionEstimate:
        estimate = self.calculate(asset, days)
        asset.calculated_daily_consumption = estimate.daily_consumption_liters
        asset.calculated_days_remaining = estimate.days_remaining
        asset.consumption_confidence = estimate.confidence
        asset.last_consumption_calc_at = utcnow()
        self.db.commit()
        return estimate

    def recalculate_all(self, days: int = 7) -> int:
        """Refresh estimates for every enabled asset. Returns the number updated."""
        assets = self.db.query(Asset).filter(Asset.is_disabled.is_(False)).all()
        updated = 0
        for asset in assets:
            try:
                self.update_asset(asset, days)
                updated += 1
            except Exception as e:
                logger.error(f"Error calculating consumption for asset {asset.id}: {e}")
                self.db.rollback()
        return updated

    @staticmethod
    def _since_last_refill(readings: List[Reading]) -> List[Reading]:
        # Only the drain since the latest refill fits a straight line
        start = 0
        for i in range(1, len(readings)):
            prev, cur = readings[i - 1].level_percent, readings[i].level_percent
            if prev is not None and cur is not None and cur - prev > REFILL_JUMP_PERCENT:
                start = i
        return readings[start:]

    @staticmethod
    def _percent_reliable(values) -> bool:
        non_zero = [v for v in values if v]
        return len(non_zero) >= len(values) * 0.5

    @staticmethod
    def _litres_reliable(values) -> bool:
        present = [v for v in values if v is not None]
        return len(present) >= max(MIN_POINTS, len(values) * 0.5)

    @staticmethod
    def _fit(x: np.ndarray, y: np.ndarray):
        slope, _ = np.polyfit(x, y, 1)
        if np.ptp(y) == 0:
            return float(slope), 0.0
        r = np.corrcoef(x, y)[0, 1]
        return float(slope), float(r ** 2)

    @staticmethod
    def _trend(x: np.ndarray, y: np.ndarray) -> str:
        """Compare the drain rate of the first and second half of the window."""
        mid = len(y) // 2
        if mid < 2 or len(y) - mid < 2 or np.ptp(x[:mid]) == 0 or np.ptp(x[mid:]) == 0:
            return "stable"
        first = max(0.0, -np.polyfit(x[:mid], y[:mid], 1)[0])
        second = max(0.0, -np.polyfit(x[mid:], y[mid:], 1)[0])
        change = (second - first) / (first or 1) * 100
        if change > 10:
            return "increasing"
        if change < -10:
            return "decreasing"
        return "stable"

    @staticmethod
    def _confidence(points: int, r_squared: float, days_analyzed: int) -> str:
        if points >= 7 and r_squared > 0.7 and days_analyzed >= 7:
            return "high"
        if points >= 5 and r_squared > 0.5:
            return "medium"
        return "low"
