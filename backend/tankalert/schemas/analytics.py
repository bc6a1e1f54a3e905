from pydantic import BaseModel
from typing import Optional, List, Literal

TrendDirection = Literal["increasing", "decreasing", "stable"]


class TankConsumptionData(BaseModel):
    location_id: int
    tank_name: str
    current_level_pct: float
    current_litres: float
    capacity_litres: float
    consumption_24h_litres: float
    consumption_24h_pct: float
    consumption_7d_litres: float
    consumption_7d_pct: float
    consumption_30d_litres: Optional[float] = None
    consumption_30d_pct: Optional[float] = None
    daily_avg_consumption_litres: float
    trend_direction: TrendDirection
    trend_indicator: str
    days_remaining: Optional[int] = None
    estimated_refill_date: Optional[str] = None
    last_refill_date: Optional[str] = None
    vs_yesterday_pct: float
    vs_7d_avg_pct: float
    efficiency_score: int
    sparkline_7d: List[float]


class FleetSummary(BaseModel):
    total_consumption_24h: float
    total_consumption_7d: float
    total_consumption_30d: Optional[float] = None
    avg_consumption_per_tank_24h: float
    fleet_trend: TrendDirection
    most_consumed_tank: Optional[str] = None
    most_consumed_amount: float
    efficiency_avg: int
    tank_count: int = 0


class ConsumptionEstimate(BaseModel):
    """Regression-based consumption estimate for one asset."""
    asset_id: int
    daily_consumption_liters: Optional[float] = None
    daily_consumption_percent: Optional[float] = None
    days_remaining: Optional[int] = None
    trend: TrendDirection = "stable"
    confidence: Literal["high", "medium", "low"] = "low"
    data_points: int = 0
    r_squared: Optional[float] = None
    method: Optional[Literal["percent", "litres"]] = None
