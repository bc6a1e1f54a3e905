from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from datetime import datetime
from typing import Annotated, Optional, Union, List, Dict, Any


def _scalar_or_none(value: Any) -> Any:
    if isinstance(value, (dict, list, tuple)):
        return None
    return value


# Upstream firmware versions send numbers as strings, ints or floats interchangeably.
# Nested values in a scalar slot are treated as missing.
Scalar = Annotated[Optional[Union[bool, int, float, str]], BeforeValidator(_scalar_or_none)]


class GasbotPayload(BaseModel):
    """One device record as posted by the Gasbot platform.

    Every field is optional at this layer; required identifiers are enforced
    when the payload is decoded into a TelemetryRecord.
    """
    model_config = ConfigDict(extra="allow")

    # Location
    LocationId: Scalar = None
    LocationGuid: Scalar = None
    TenancyName: Scalar = None
    CustomerGuid: Scalar = None
    LocationAddress: Scalar = None
    LocationState: Scalar = None
    LocationPostcode: Scalar = None
    LocationCountry: Scalar = None
    LocationLat: Scalar = None
    LocationLng: Scalar = None
    LocationCalibratedFillLevel: Scalar = None
    LocationDailyConsumption: Scalar = None
    LocationDaysRemaining: Scalar = None
    LocationInstallationStatus: Scalar = None
    LocationDisabledStatus: Scalar = None
    LocationLastCalibratedTelemetryTimestamp: Scalar = None
    LocationLastCalibratedTelemetryEpoch: Scalar = None

    # Asset
    AssetGuid: Scalar = None
    AssetSerialNumber: Scalar = None
    AssetProfileName: Scalar = None
    AssetProfileCommodity: Scalar = None
    AssetProfileWaterCapacity: Scalar = None
    AssetReportedLitres: Scalar = None
    AssetCalibratedFillLevel: Scalar = None
    AssetRawFillLevel: Scalar = None
    AssetRefillCapacityLitres: Scalar = None
    AssetDailyConsumption: Scalar = None
    AssetDaysRemaining: Scalar = None
    AssetDisabledStatus: Scalar = None
    AssetLastCalibratedTelemetryTimestamp: Scalar = None
    AssetLastCalibratedTelemetryEpoch: Scalar = None

    # Device
    DeviceSerialNumber: Scalar = None
    DeviceOnline: Scalar = None
    DeviceState: Scalar = None
    DeviceBatteryVoltage: Scalar = None
    DeviceTemperature: Scalar = None


class TelemetryRecord(BaseModel):
    """Canonical internal form of one device payload."""
    site_name: str
    serial_number: str
    device_serial: Optional[str] = None
    location_guid: Optional[str] = None
    asset_guid: Optional[str] = None

    customer_name: Optional[str] = None
    customer_guid: Optional[str] = None
    address: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_fill_percent: Optional[float] = None
    location_daily_consumption: Optional[float] = None
    location_days_remaining: Optional[int] = None
    installation_status: Optional[int] = None
    location_disabled: bool = False
    location_telemetry_at: Optional[datetime] = None
    location_telemetry_epoch: Optional[int] = None

    profile_name: Optional[str] = None
    commodity: Optional[str] = None
    capacity_liters: Optional[float] = None
    level_liters: Optional[float] = None
    level_percent: Optional[float] = None
    raw_percent: Optional[float] = None
    ullage_liters: Optional[float] = None
    daily_consumption: Optional[float] = None
    days_remaining: Optional[int] = None
    asset_disabled: bool = False

    is_online: bool = False
    device_state: Optional[str] = None
    battery_voltage: Optional[float] = None
    temperature_c: Optional[float] = None

    telemetry_at: datetime
    telemetry_epoch: int

    raw: Dict[str, Any] = Field(default_factory=dict)


class WebhookStats(BaseModel):
    totalRecords: int
    processedRecords: int
    errorCount: int
    duration: int  # milliseconds


class WebhookResponse(BaseModel):
    success: bool
    message: str
    stats: WebhookStats
    errors: Optional[List[str]] = None
