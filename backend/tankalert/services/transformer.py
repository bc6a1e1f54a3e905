"""
Mapping between Gasbot device payloads and registry rows.

A missing or unparseable value becomes None rather than an exception. The only
hard failures are a payload that is not an object, or one without a site name
or a device serial.
"""
import logging
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from tankalert.database import utcnow
from tankalert.schemas.webhook import GasbotPayload, TelemetryRecord

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

# Epoch values above this are milliseconds rather than seconds
_EPOCH_MS_CUTOFF = 10 ** 11

# 9999-12-31T23:59:59.999Z, the last instant a datetime can hold
_EPOCH_MS_MAX = 253402300799999

_EPOCH = datetime(1970, 1, 1)


def slugify(value: Any) -> str:
    """Lowercase, collapse non-alphanumerics into single hyphens and trim."""
    slug = _NON_ALNUM.sub("-", str(value).strip().lower()).strip("-")
    if not slug:
        raise ValueError(f"Cannot derive identifier from {value!r}")
    return slug


def location_guid_for(site_name: str) -> str:
    return f"location-{slugify(site_name)}"


def asset_guid_for(serial_number: str) -> str:
    return f"asset-{slugify(serial_number)}"


def parse_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def parse_int(value: Any) -> Optional[int]:
    result = parse_float(value)
    if result is None:
        return None
    return int(result)


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "online")
    return False


def parse_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_epoch(value: Any) -> Optional[int]:
    """Telemetry epoch in milliseconds, or None outside the representable range."""
    epoch = parse_int(value)
    if epoch is None or epoch <= 0:
        return None
    if epoch < _EPOCH_MS_CUTOFF:
        epoch *= 1000
    if epoch > _EPOCH_MS_MAX:
        return None
    return epoch


def epoch_to_datetime(epoch_ms: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=epoch_ms)


def datetime_to_epoch(dt: datetime) -> int:
    return int(dt.replace(tzinfo=timezone.utc).timestamp() * 1000)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or an epoch number into naive UTC."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        epoch = parse_epoch(value)
        return epoch_to_datetime(epoch) if epoch else None
    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        epoch = parse_epoch(text)
        return epoch_to_datetime(epoch) if epoch else None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    except (OverflowError, ValueError):
        return None
    return parsed


def _split_address(address: Optional[str]) -> Dict[str, Optional[str]]:
    # "12 Main St, Town, WA, 6000, Australia"
    parts = [p.strip() for p in address.split(",")] if address else []
    return {
        "address": parts[0] if parts else None,
        "state": parts[2] if len(parts) > 2 and parts[2] else None,
        "postcode": parts[3] if len(parts) > 3 and parts[3] else None,
    }


def decode(raw: Any) -> TelemetryRecord:
    """Validate one raw payload and convert it to a TelemetryRecord."""
    if not isinstance(raw, dict):
        raise ValueError(f"Payload must be an object, got {type(raw).__name__}")

    payload = GasbotPayload.model_validate(raw)

    site_name = parse_text(payload.LocationId) or parse_text(payload.LocationGuid)
    if not site_name:
        raise ValueError("Missing site identifier (LocationId)")
    serial = parse_text(payload.AssetSerialNumber) or parse_text(payload.DeviceSerialNumber)
    if not serial:
        raise ValueError("Missing device serial number")

    capacity = parse_float(payload.AssetProfileWaterCapacity)
    litres = parse_float(payload.AssetReportedLitres)
    level_percent = parse_float(payload.AssetCalibratedFillLevel)
    if level_percent is None and litres is not None and capacity:
        level_percent = round(litres / capacity * 100, 2)

    ullage = parse_float(payload.AssetRefillCapacityLitres)
    if ullage is None and litres is not None and capacity:
        ullage = max(0.0, capacity - litres)

    address_text = parse_text(payload.LocationAddress)
    address = _split_address(address_text)

    asset_epoch = parse_epoch(payload.AssetLastCalibratedTelemetryEpoch)
    telemetry_at = parse_timestamp(payload.AssetLastCalibratedTelemetryTimestamp)
    if telemetry_at is None and asset_epoch is not None:
        telemetry_at = epoch_to_datetime(asset_epoch)
    if telemetry_at is None:
        telemetry_at = utcnow()
    if asset_epoch is None:
        asset_epoch = datetime_to_epoch(telemetry_at)

    location_epoch = parse_epoch(payload.LocationLastCalibratedTelemetryEpoch)
    location_telemetry_at = parse_timestamp(payload.LocationLastCalibratedTelemetryTimestamp)
    if location_telemetry_at is None and location_epoch is not None:
        location_telemetry_at = epoch_to_datetime(location_epoch)

    return TelemetryRecord(
        site_name=site_name,
        serial_number=serial,
        device_serial=parse_text(payload.DeviceSerialNumber),
        location_guid=parse_text(payload.LocationGuid),
        asset_guid=parse_text(payload.AssetGuid),
        customer_name=parse_text(payload.TenancyName),
        customer_guid=parse_text(payload.CustomerGuid),
        address=address["address"] if address_text else None,
        state=parse_text(payload.LocationState) or address["state"],
        postcode=parse_text(payload.LocationPostcode) or address["postcode"],
        country=parse_text(payload.LocationCountry) or "Australia",
        latitude=parse_float(payload.LocationLat),
        longitude=parse_float(payload.LocationLng),
        location_fill_percent=parse_float(payload.LocationCalibratedFillLevel),
        location_daily_consumption=parse_float(payload.LocationDailyConsumption),
        location_days_remaining=parse_int(payload.LocationDaysRemaining),
        installation_status=parse_int(payload.LocationInstallationStatus),
        location_disabled=parse_bool(payload.LocationDisabledStatus),
        location_telemetry_at=location_telemetry_at,
        location_telemetry_epoch=location_epoch,
        profile_name=parse_text(payload.AssetProfileName),
        commodity=parse_text(payload.AssetProfileCommodity),
        capacity_liters=capacity,
        level_liters=litres,
        level_percent=level_percent,
        raw_percent=parse_float(payload.AssetRawFillLevel),
        ullage_liters=ullage,
        daily_consumption=parse_float(payload.AssetDailyConsumption),
        days_remaining=parse_int(payload.AssetDaysRemaining),
        asset_disabled=parse_bool(payload.AssetDisabledStatus),
        is_online=parse_bool(payload.DeviceOnline),
        device_state=parse_text(payload.DeviceState),
        battery_voltage=parse_float(payload.DeviceBatteryVoltage),
        temperature_c=parse_float(payload.DeviceTemperature),
        telemetry_at=telemetry_at,
        telemetry_epoch=asset_epoch,
        raw=raw,
    )


def validate(record: TelemetryRecord) -> List[str]:
    """Range checks that are reported but never reject a record."""
    warnings = []
    if record.latitude is not None and not -90 <= record.latitude <= 90:
        warnings.append(f"Latitude out of range: {record.latitude}")
    if record.longitude is not None and not -180 <= record.longitude <= 180:
        warnings.append(f"Longitude out of range: {record.longitude}")
    if record.level_percent is not None and not 0 <= record.level_percent <= 100:
        warnings.append(f"Fill level out of range: {record.level_percent}%")
    if record.battery_voltage is not None and not 0 <= record.battery_voltage <= 20:
        warnings.append(f"Battery voltage out of range: {record.battery_voltage}V")
    if record.temperature_c is not None and not -50 <= record.temperature_c <= 100:
        warnings.append(f"Temperature out of range: {record.temperature_c}C")
    return warnings


def location_values(record: TelemetryRecord) -> Dict[str, Any]:
    fill = record.location_fill_percent if record.location_fill_percent is not None else record.level_percent
    return {
        "external_guid": location_guid_for(record.site_name),
        "name": record.site_name,
        "location_guid": record.location_guid,
        "customer_name": record.customer_name,
        "customer_guid": record.customer_guid,
        "address": record.address,
        "state": record.state,
        "postcode": record.postcode,
        "country": record.country,
        "latitude": record.latitude,
        "longitude": record.longitude,
        "calibrated_fill_level": fill,
        "is_online": record.is_online,
        "installation_status": record.installation_status,
        "daily_consumption": record.location_daily_consumption,
        "days_remaining": record.location_days_remaining,
        "last_telemetry_at": record.location_telemetry_at or record.telemetry_at,
        "last_telemetry_epoch": record.location_telemetry_epoch or record.telemetry_epoch,
        "is_disabled": record.location_disabled,
    }


def asset_values(record: TelemetryRecord) -> Dict[str, Any]:
    return {
        "external_guid": asset_guid_for(record.serial_number),
        "name": record.profile_name or record.serial_number,
        "serial_number": record.serial_number,
        "device_serial": record.device_serial,
        "asset_guid": record.asset_guid,
        "profile_name": record.profile_name,
        "commodity": record.commodity,
        "is_online": record.is_online,
        "is_disabled": record.asset_disabled,
        "device_state": record.device_state,
        "battery_voltage": record.battery_voltage,
        "temperature_c": record.temperature_c,
        "capacity_liters": record.capacity_liters,
        "current_level_liters": record.level_liters,
        "current_level_percent": record.level_percent,
        "current_raw_percent": record.raw_percent,
        "ullage_liters": record.ullage_liters,
        "daily_consumption_liters": record.daily_consumption,
        "days_remaining": record.days_remaining,
        "last_telemetry_at": record.telemetry_at,
        "last_telemetry_epoch": record.telemetry_epoch,
        "raw_data": record.raw,
    }


def reading_values(record: TelemetryRecord) -> Dict[str, Any]:
    return {
        "reading_at": record.telemetry_at,
        "level_percent": record.level_percent,
        "raw_percent": record.raw_percent,
        "level_liters": record.level_liters,
        "battery_voltage": record.battery_voltage,
        "temperature_c": record.temperature_c,
        "is_online": record.is_online,
        "device_state": record.device_state,
        "daily_consumption": record.daily_consumption,
        "days_remaining": record.days_remaining,
        "telemetry_epoch": record.telemetry_epoch,
    }
