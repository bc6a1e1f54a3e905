from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from tankalert.config import Settings, get_settings
from tankalert.database import get_db, utcnow
from tankalert.schemas import AssetResponse, ReadingResponse, ReadingStatistics
from tankalert.services.reading_store import ReadingStore
from tankalert.services.registry import RegistryService

router = APIRouter()


def _get_asset_or_404(db: Session, asset_id: int):
    asset = RegistryService(db).get_asset(asset_id)
    if not asset:
        raise HTTPException(status_code=404, detail="Asset not found")
    return asset


@router.get("", response_model=List[AssetResponse])
async def list_assets(
    location_id: Optional[int] = Query(None),
    db: Session = Depends(get_db)
):
    return RegistryService(db).list_assets(location_id=location_id)


@router.get("/{asset_id}", response_model=AssetResponse)
async def get_asset(asset_id: int, db: Session = Depends(get_db)):
    return _get_asset_or_404(db, asset_id)


@router.get("/{asset_id}/readings", response_model=List[ReadingResponse])
async def get_readings(
    asset_id: int,
    hours: int = Query(24, ge=1, le=24 * 90),
    db: Session = Depends(get_db)
):
    """Reading history for the last N hours, oldest first."""
    _get_asset_or_404(db, asset_id)
    return ReadingStore(db).find_recent_readings(asset_id, hours)


@router.get("/{asset_id}/refills", response_model=List[ReadingResponse])
async def get_refills(
    asset_id: int,
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Readings at which a refill was observed, most recent first."""
    _get_asset_or_404(db, asset_id)
    return ReadingStore(db).detect_refill_events(asset_id, days, settings.refill_threshold_percent)


@router.get("/{asset_id}/statistics", response_model=ReadingStatistics)
async def get_statistics(
    asset_id: int,
    days: int = Query(7, ge=1, le=365),
    db: Session = Depends(get_db)
):
    _get_asset_or_404(db, asset_id)
    end = utcnow()
    return ReadingStore(db).get_statistics(asset_id, end - timedelta(days=days), end)
