from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from tankalert.config import Settings, get_settings
from tankalert.database import get_db
from tankalert.schemas import TankConsumptionData, FleetSummary, ConsumptionEstimate
from tankalert.services.analytics import AnalyticsService
from tankalert.services.consumption import ConsumptionCalculator
from tankalert.services.registry import RegistryService

router = APIRouter()


def get_analytics_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
) -> AnalyticsService:
    return AnalyticsService(
        db,
        refill_threshold_percent=settings.refill_threshold_percent,
        refill_lookback_days=settings.refill_lookback_days,
    )


@router.get("/fleet", response_model=FleetSummary)
async def get_fleet_summary(service: AnalyticsService = Depends(get_analytics_service)):
    """Consumption totals and trend across all online tanks."""
    return service.get_fleet_summary()


@router.get("/tanks/{asset_id}", response_model=TankConsumptionData)
async def get_tank_analytics(asset_id: int, service: AnalyticsService = Depends(get_analytics_service)):
    data = service.get_tank_analytics(asset_id)
    if data is None:
        raise HTTPException(status_code=404, detail="Asset not found")
    return data


@router.get("/tanks/{asset_id}/consumption", response_model=ConsumptionEstimate)
async def get_consumption_estimate(
    asset_id: int,
    days: int = Query(7, ge=2, le=90),
    db: Session = Depends(get_db)
):
    """Regression estimate of daily consumption from the reading history."""
    asset = RegistryService(db).get_asset(asset_id)
    if not asset:
        raise HTTPException(status_code=404, detail="Asset not found")
    return ConsumptionCalculator(db).calculate(asset, days=days)
