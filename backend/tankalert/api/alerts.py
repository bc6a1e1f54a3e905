from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from tankalert.api.deps import verify_webhook_token
from tankalert.config import Settings, get_settings
from tankalert.database import get_db
from tankalert.models import AlertType
from tankalert.schemas import AlertResponse, AlertResolve
from tankalert.services.alert_generation import AlertGenerator
from tankalert.services.alert_store import AlertStore

router = APIRouter()


@router.get("", response_model=List[AlertResponse])
async def list_active_alerts(
    asset_id: Optional[int] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db)
):
    """List active alerts, optionally for a single asset."""
    store = AlertStore(db)
    if asset_id is not None:
        return store.list_active_by_asset(asset_id)
    return store.list_active(limit=limit)


@router.post("/{asset_id}/{alert_type}/resolve", dependencies=[Depends(verify_webhook_token)])
async def resolve_alert(
    asset_id: int,
    alert_type: AlertType,
    body: Optional[AlertResolve] = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Resolve the active alert of a type, allowing the next breach to alert again."""
    generator = AlertGenerator(db, thresholds=settings.alert_thresholds)
    resolved = generator.resolve_alert(asset_id, alert_type, notes=body.notes if body else None)
    if not resolved:
        raise HTTPException(status_code=404, detail="No active alert of that type")
    return {"message": "Alert resolved", "resolved": resolved}
