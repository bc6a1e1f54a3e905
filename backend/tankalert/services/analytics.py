"""
Consumption analytics over the reading history.

Windowed consumption compares the oldest and newest reading in a window and
never reports a negative value: a refill inside the window clamps to zero.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tankalert.database import utcnow
from tankalert.models import Asset, Reading
from tankalert.schemas.analytics import TankConsumptionData, FleetSummary
from tankalert.services.reading_store import ReadingStore
from tankalert.services.registry import RegistryService

logger = logging.getLogger(__name__)

SPARKLINE_DAYS = 7
TREND_INDICATORS = {"increasing": "↑", "decreasing": "↓", "stable": "→"}


@dataclass
class WindowConsumption:
    litres: Optional[float] = 0
    pct: Optional[float] = 0
    daily_values: List[float] = field(default_factory=list)


@dataclass
class AssetMetrics:
    consumption_24h: WindowConsumption
    consumption_7d: WindowConsumption
    consumption_30d: WindowConsumption
    daily_avg: float
    efficiency_score: int


def consumed_between(oldest: Reading, newest: Reading):
    """Percent and litres used between two readings, clamped at zero.

    Either measure is zero when one of the readings lacks it.
    """
    if oldest.level_percent is not None and newest.level_percent is not None:
        pct = max(0.0, oldest.level_percent - newest.level_percent)
    else:
        pct = 0.0
    if oldest.level_liters is not None and newest.level_liters is not None:
        litres = max(0.0, oldest.level_liters - newest.level_liters)
    else:
        litres = 0.0
    return pct, litres


def calculate_trend_direction(values: List[float]) -> str:
    if len(values) < 3:
        return "stable"

    mid = len(values) // 2
    first_half = values[:mid]
    second_half = values[mid:]
    first_avg = sum(first_half) / len(first_half)
    second_avg = sum(second_half) / len(second_half)

    change = (second_avg - first_avg) / (first_avg or 1) * 100
    if change > 10:
        return "increasing"
    if change < -10:
        return "decreasing"
    return "stable"


def calculate_efficiency_score(consumption_24h: float, daily_avg: float, current_level: float) -> int:
    """0-100: consistency with the 7 day average, less a penalty below 25% fill."""
    variation = abs(consumption_24h - daily_avg) / daily_avg if daily_avg > 0 else 0
    consistency = max(0.0, 100 - variation * 100)
    penalty = (25 - current_level) * 2 if current_level < 25 else 0
    return int(round(max(0.0, min(100.0, consistency - penalty))))


def calculate_vs_yesterday(daily_values: List[float]) -> float:
    if len(daily_values) < 2:
        return 0.0
    today, yesterday = daily_values[-1], daily_values[-2]
    if yesterday == 0:
        return 0.0
    return round((today - yesterday) / yesterday * 100, 1)


def calculate_vs_7d_avg(consumption_24h: float, avg_7d: float) -> float:
    if avg_7d == 0:
        return 0.0
    return round((consumption_24h - avg_7d) / avg_7d * 100, 1)


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() + "Z" if dt else None


class AnalyticsService:
    def __init__(
        self,
        db: Session,
        refill_threshold_percent: float = 10.0,
        refill_lookback_days: int = 30,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.clock = clock
        self.refill_threshold_percent = refill_threshold_percent
        self.refill_lookback_days = refill_lookback_days
        self.readings = ReadingStore(db, clock=clock)
        self.registry = RegistryService(db)

    def get_tank_analytics(self, asset_id: int) -> Optional[TankConsumptionData]:
        asset = self.registry.get_asset(asset_id)
        if not asset:
            return None

        metrics = self._asset_metrics(asset)
        trend = calculate_trend_direction(metrics.consumption_7d.daily_values)
        days_remaining = asset.days_remaining
        estimated_refill = None
        if days_remaining is not None:
            estimated_refill = _iso(self.clock() + timedelta(days=days_remaining))

        return TankConsumptionData(
            location_id=asset.location_id,
            tank_name=asset.name or "Unknown Tank",
            current_level_pct=asset.current_level_percent or 0,
            current_litres=asset.current_level_liters or 0,
            capacity_litres=asset.capacity_liters or 0,
            consumption_24h_litres=metrics.consumption_24h.litres,
            consumption_24h_pct=metrics.consumption_24h.pct,
            consumption_7d_litres=metrics.consumption_7d.litres,
            consumption_7d_pct=metrics.consumption_7d.pct,
            consumption_30d_litres=metrics.consumption_30d.litres,
            consumption_30d_pct=metrics.consumption_30d.pct,
            daily_avg_consumption_litres=round(metrics.daily_avg),
            trend_direction=trend,
            trend_indicator=TREND_INDICATORS[trend],
            days_remaining=days_remaining,
            estimated_refill_date=estimated_refill,
            last_refill_date=self._last_refill_date(asset.id),
            vs_yesterday_pct=calculate_vs_yesterday(metrics.consumption_7d.daily_values),
            vs_7d_avg_pct=calculate_vs_7d_avg(metrics.consumption_24h.litres, metrics.daily_avg),
            efficiency_score=metrics.efficiency_score,
            sparkline_7d=metrics.consumption_7d.daily_values,
        )

    def get_fleet_summary(self) -> FleetSummary:
        """Aggregate consumption over every online asset."""
        total_24h = 0.0
        total_7d = 0.0
        total_30d = None
        efficiency_sum = 0
        most_consumed_tank = None
        most_consumed_amount = 0.0
        trend_values: List[float] = []
        analyzed = 0

        for asset in self.registry.find_online_assets():
            try:
                metrics = self._asset_metrics(asset)
            except Exception as e:
                logger.warning(f"Skipping asset {asset.id} in fleet summary: {e}")
                self.db.rollback()
                continue

            analyzed += 1
            total_24h += metrics.consumption_24h.litres
            total_7d += metrics.consumption_7d.litres
            if metrics.consumption_30d.litres is not None:
                total_30d = (total_30d or 0) + metrics.consumption_30d.litres

            if metrics.consumption_24h.litres > most_consumed_amount:
                most_consumed_amount = metrics.consumption_24h.litres
                most_consumed_tank = asset.name or asset.serial_number or "Unknown"

            efficiency_sum += metrics.efficiency_score
            trend_values.extend(metrics.consumption_7d.daily_values)

        return FleetSummary(
            total_consumption_24h=round(total_24h),
            total_consumption_7d=round(total_7d),
            total_consumption_30d=round(total_30d) if total_30d is not None else None,
            avg_consumption_per_tank_24h=round(total_24h / analyzed) if analyzed else 0,
            fleet_trend=calculate_trend_direction(trend_values),
            most_consumed_tank=most_consumed_tank,
            most_consumed_amount=round(most_consumed_amount),
            efficiency_avg=round(efficiency_sum / analyzed) if analyzed else 0,
            tank_count=analyzed,
        )

    def get_sparkline(self, asset_id: int) -> List[float]:
        return self._seven_day_consumption(asset_id).daily_values

    def _asset_metrics(self, asset: Asset) -> AssetMetrics:
        consumption_24h = self._window_consumption(asset.id, 24)
        consumption_7d = self._seven_day_consumption(asset.id)
        consumption_30d = self._window_consumption(asset.id, 30 * 24, allow_null=True)

        daily_values = consumption_7d.daily_values
        daily_avg = sum(daily_values) / len(daily_values) if daily_values else 0
        efficiency = calculate_efficiency_score(
            consumption_24h.litres,
            daily_avg,
            asset.current_level_percent or 0
        )
        return AssetMetrics(consumption_24h, consumption_7d, consumption_30d, daily_avg, efficiency)

    def _recent(self, asset_id: int, hours: float) -> Optional[List[Reading]]:
        try:
            return self.readings.find_recent_readings(asset_id, hours)
        except SQLAlchemyError as e:
            logger.warning(f"Could not load {hours}h readings for asset {asset_id}: {e}")
            self.db.rollback()
            return None

    def _window_consumption(self, asset_id: int, hours: float, allow_null: bool = False) -> WindowConsumption:
        readings = self._recent(asset_id, hours)
        if not readings or len(readings) < 2:
            # Longer windows report "no data" rather than "no consumption"
            if allow_null:
                return WindowConsumption(litres=None, pct=None)
            return WindowConsumption(litres=0, pct=0)

        pct, litres = consumed_between(readings[0], readings[-1])
        return WindowConsumption(litres=round(litres), pct=round(pct, 1))

    def _seven_day_consumption(self, asset_id: int) -> WindowConsumption:
        readings = self._recent(asset_id, SPARKLINE_DAYS * 24)
        if not readings or len(readings) < 2:
            return WindowConsumption(litres=0, pct=0, daily_values=[0] * SPARKLINE_DAYS)

        pct, litres = consumed_between(readings[0], readings[-1])
        return WindowConsumption(
            litres=round(litres),
            pct=round(pct, 1),
            daily_values=self._daily_values(readings),
        )

    def _daily_values(self, readings: List[Reading]) -> List[float]:
        """Litres consumed per UTC calendar day, oldest day first, ending today."""
        today = self.clock().date()
        buckets = {today - timedelta(days=offset): [] for offset in range(SPARKLINE_DAYS - 1, -1, -1)}
        for reading in readings:
            day = reading.reading_at.date()
            if day in buckets:
                buckets[day].append(reading)

        values = []
        for day_readings in buckets.values():
            if len(day_readings) >= 2:
                _, litres = consumed_between(day_readings[0], day_readings[-1])
                values.append(round(litres))
            else:
                values.append(0)
        return values

    def _last_refill_date(self, asset_id: int) -> Optional[str]:
        try:
            refills = self.readings.detect_refill_events(
                asset_id,
                self.refill_lookback_days,
                self.refill_threshold_percent
            )
        except SQLAlchemyError as e:
            logger.warning(f"Refill detection failed for asset {asset_id}: {e}")
            self.db.rollback()
            return None
        return _iso(refills[0].reading_at) if refills else None
