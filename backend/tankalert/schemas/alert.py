from pydantic import BaseModel, field_serializer
from datetime import datetime
from typing import Optional


class AlertResponse(BaseModel):
    id: int
    asset_id: int
    alert_type: str
    severity: str
    title: str
    message: Optional[str] = None
    current_value: Optional[float] = None
    threshold_value: Optional[float] = None
    previous_value: Optional[float] = None
    is_active: bool
    triggered_at: datetime
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None

    @field_serializer('triggered_at', 'resolved_at')
    def serialize_dt(self, dt: datetime, _info):
        if dt is None: return None
        if dt.tzinfo is None:
            return dt.isoformat() + 'Z'
        return dt

    class Config:
        from_attributes = True


class AlertResolve(BaseModel):
    notes: Optional[str] = None


class SyncLogResponse(BaseModel):
    id: int
    sync_type: str
    status: str
    locations_processed: int = 0
    assets_processed: int = 0
    readings_processed: int = 0
    alerts_triggered: int = 0
    error_count: int = 0
    error_message: Optional[str] = None
    duration_ms: Optional[int] = None
    started_at: datetime
    completed_at: Optional[datetime] = None

    @field_serializer('started_at', 'completed_at')
    def serialize_dt(self, dt: datetime, _info):
        if dt is None: return None
        if dt.tzinfo is None:
            return dt.isoformat() + 'Z'
        return dt

    class Config:
        from_attributes = True
