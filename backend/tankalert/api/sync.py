from fastapi import APIRouter, Depends, HTTPException, BackgroundTasks, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from tankalert.api.deps import verify_webhook_token
from tankalert.config import Settings, get_settings
from tankalert.database import get_db
from tankalert.models import SyncLog
from tankalert.providers import PROVIDER_REGISTRY
from tankalert.schemas import SyncLogResponse
from tankalert.tasks.gasbot_sync import run_gasbot_sync

router = APIRouter()


@router.get("/logs", response_model=List[SyncLogResponse])
async def list_sync_logs(
    sync_type: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db)
):
    """Recent ingestion runs, newest first."""
    query = db.query(SyncLog)
    if sync_type:
        query = query.filter(SyncLog.sync_type == sync_type)
    return query.order_by(SyncLog.started_at.desc(), SyncLog.id.desc()).limit(limit).all()


@router.post("/gasbot", dependencies=[Depends(verify_webhook_token)])
async def trigger_gasbot_sync(
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings)
):
    """Run a Gasbot API pull sync now instead of waiting for the schedule."""
    if not settings.gasbot_api_configured:
        raise HTTPException(status_code=400, detail="Gasbot API credentials are not configured")
    background_tasks.add_task(run_gasbot_sync, settings)
    return {"message": "Gasbot sync started"}


@router.get("/providers")
async def get_provider_types():
    """Get available pull-sync providers."""
    return {
        "types": [
            {"id": provider_type, "description": provider.get_description()}
            for provider_type, provider in PROVIDER_REGISTRY.items()
        ]
    }
