from tankalert.schemas.webhook import GasbotPayload, TelemetryRecord, WebhookStats, WebhookResponse
from tankalert.schemas.location import (
    LocationResponse, LocationDetailResponse, AssetResponse, ReadingResponse, ReadingStatistics,
)
from tankalert.schemas.alert import AlertResponse, AlertResolve, SyncLogResponse
from tankalert.schemas.analytics import TankConsumptionData, FleetSummary, ConsumptionEstimate

__all__ = [
    "GasbotPayload", "TelemetryRecord", "WebhookStats", "WebhookResponse",
    "LocationResponse", "LocationDetailResponse", "AssetResponse", "ReadingResponse", "ReadingStatistics",
    "AlertResponse", "AlertResolve", "SyncLogResponse",
    "TankConsumptionData", "FleetSummary", "ConsumptionEstimate",
]
