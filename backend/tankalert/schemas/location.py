from pydantic import BaseModel, field_serializer
from datetime import datetime
from typing import Optional, List


def _utc_iso(dt: Optional[datetime]):
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.isoformat() + 'Z'
    return dt


class AssetResponse(BaseModel):
    id: int
    location_id: int
    external_guid: str
    name: Optional[str] = None
    serial_number: str
    device_serial: Optional[str] = None
    profile_name: Optional[str] = None
    commodity: Optional[str] = None
    is_online: bool = False
    is_disabled: bool = False
    device_state: Optional[str] = None
    battery_voltage: Optional[float] = None
    temperature_c: Optional[float] = None
    capacity_liters: Optional[float] = None
    current_level_liters: Optional[float] = None
    current_level_percent: Optional[float] = None
    current_raw_percent: Optional[float] = None
    ullage_liters: Optional[float] = None
    daily_consumption_liters: Optional[float] = None
    days_remaining: Optional[int] = None
    calculated_daily_consumption: Optional[float] = None
    calculated_days_remaining: Optional[int] = None
    consumption_confidence: Optional[str] = None
    last_telemetry_at: Optional[datetime] = None
    last_telemetry_epoch: Optional[int] = None

    @field_serializer('last_telemetry_at')
    def serialize_dt(self, dt: datetime, _info):
        return _utc_iso(dt)

    class Config:
        from_attributes = True


class LocationResponse(BaseModel):
    id: int
    external_guid: str
    name: str
    customer_name: Optional[str] = None
    address: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    calibrated_fill_level: Optional[float] = None
    is_online: bool = False
    is_disabled: bool = False
    daily_consumption: Optional[float] = None
    days_remaining: Optional[int] = None
    last_telemetry_at: Optional[datetime] = None

    @field_serializer('last_telemetry_at')
    def serialize_dt(self, dt: datetime, _info):
        return _utc_iso(dt)

    class Config:
        from_attributes = True


class LocationDetailResponse(LocationResponse):
    assets: List[AssetResponse] = []


class ReadingResponse(BaseModel):
    id: int
    asset_id: int
    reading_at: datetime
    level_percent: Optional[float] = None
    raw_percent: Optional[float] = None
    level_liters: Optional[float] = None
    battery_voltage: Optional[float] = None
    temperature_c: Optional[float] = None
    is_online: bool = False
    device_state: Optional[str] = None
    daily_consumption: Optional[float] = None
    days_remaining: Optional[int] = None

    @field_serializer('reading_at')
    def serialize_dt(self, dt: datetime, _info):
        return _utc_iso(dt)

    class Config:
        from_attributes = True


class ReadingStatistics(BaseModel):
    reading_count: int
    avg_level_percent: Optional[float] = None
    min_level_percent: Optional[float] = None
    max_level_percent: Optional[float] = None
    avg_battery_voltage: Optional[float] = None
    avg_temperature_c: Optional[float] = None
