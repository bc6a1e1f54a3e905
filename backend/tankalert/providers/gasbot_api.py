import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from tankalert.providers.base import BaseProvider

logger = logging.getLogger(__name__)


class GasbotApiError(Exception):
    pass


class GasbotAuthError(GasbotApiError):
    pass


# camelCase field on the /locations response -> webhook payload field
LOCATION_FIELDS = {
    "locationId": "LocationId",
    "locationGuid": "LocationGuid",
    "customerName": "TenancyName",
    "customerGuid": "CustomerGuid",
    "address1": "LocationAddress",
    "state": "LocationState",
    "postcode": "LocationPostcode",
    "country": "LocationCountry",
    "lat": "LocationLat",
    "lng": "LocationLng",
    "latestCalibratedFillPercentage": "LocationCalibratedFillLevel",
    "installationStatus": "LocationInstallationStatus",
    "disabled": "LocationDisabledStatus",
    "latestTelemetry": "LocationLastCalibratedTelemetryTimestamp",
    "latestTelemetryEpoch": "LocationLastCalibratedTelemetryEpoch",
}

ASSET_FIELDS = {
    "assetGuid": "AssetGuid",
    "assetSerialNumber": "AssetSerialNumber",
    "assetProfileName": "AssetProfileName",
    "assetDisabled": "AssetDisabledStatus",
    "deviceSerialNumber": "DeviceSerialNumber",
    "deviceOnline": "DeviceOnline",
    "deviceState": "DeviceState",
    "deviceBatteryVoltage": "DeviceBatteryVoltage",
    "latestCalibratedFillPercentage": "AssetCalibratedFillLevel",
    "latestRawFillPercentage": "AssetRawFillLevel",
    "latestTelemetryEventTimestamp": "AssetLastCalibratedTelemetryTimestamp",
    "latestTelemetryEventEpoch": "AssetLastCalibratedTelemetryEpoch",
}


def flatten_location(location: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Turn one /locations entry with nested assets into webhook-shaped payloads."""
    base = {target: location[source] for source, target in LOCATION_FIELDS.items() if location.get(source) is not None}
    payloads = []
    for asset in location.get("assets") or []:
        payload = dict(base)
        payload.update({target: asset[source] for source, target in ASSET_FIELDS.items() if asset.get(source) is not None})
        payloads.append(payload)
    return payloads


class GasbotApiProvider(BaseProvider):
    """Pulls current tank state from the Gasbot dashboard API."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        api_secret: str,
        timeout: float = 30.0,
        retry_attempts: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        super().__init__(base_url)
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout
        self.retry_attempts = max(1, retry_attempts)
        self.transport = transport
        self.sleep = sleep

    @classmethod
    def get_provider_type(cls) -> str:
        return "gasbot_api"

    @classmethod
    def get_description(cls) -> str:
        return "Polls tank locations and assets from the Gasbot dashboard API"

    async def fetch_payloads(self) -> List[Dict[str, Any]]:
        locations = await self.fetch_locations()
        payloads = []
        for location in locations:
            payloads.extend(flatten_location(location))
        logger.info(f"Gasbot API returned {len(locations)} locations, {len(payloads)} assets")
        return payloads

    async def fetch_locations(self) -> List[Dict[str, Any]]:
        data = await self._request("/locations")
        if not isinstance(data, list):
            raise GasbotApiError("Invalid API response: expected array of locations")
        return data

    async def _request(self, path: str) -> Any:
        headers = {
            "X-API-Key": self.api_key,
            "X-API-Secret": self.api_secret,
            "Accept": "application/json",
        }
        last_error = None

        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self.transport,
        ) as client:
            for attempt in range(1, self.retry_attempts + 1):
                try:
                    response = await client.get(path)
                    if response.status_code in (401, 403):
                        raise GasbotAuthError(f"Authentication failed: {response.status_code}")
                    if response.is_error:
                        raise GasbotApiError(f"API error: {response.status_code} - {response.text[:200]}")
                    return response.json()
                except GasbotAuthError:
                    raise
                except (GasbotApiError, httpx.HTTPError, ValueError) as e:
                    last_error = e
                    logger.warning(f"Gasbot API request {path} failed (attempt {attempt}/{self.retry_attempts}): {e}")
                    if attempt < self.retry_attempts:
                        await self.sleep(2 ** (attempt - 1))

        raise GasbotApiError(f"Request failed after {self.retry_attempts} attempts: {last_error}")
