from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from tankalert.models import Location, Asset


@dataclass(frozen=True)
class AssetSnapshot:
    """Asset state as it was before the current upsert."""
    is_online: bool
    battery_voltage: Optional[float] = None
    current_level_percent: Optional[float] = None
    days_remaining: Optional[int] = None


class RegistryService:
    """Location and asset rows keyed by their deterministic external_guid."""

    def __init__(self, db: Session):
        self.db = db

    def get_location(self, location_id: int) -> Optional[Location]:
        return self.db.query(Location).filter(Location.id == location_id).first()

    def get_location_by_guid(self, external_guid: str) -> Optional[Location]:
        return self.db.query(Location).filter(Location.external_guid == external_guid).first()

    def list_locations(self, include_disabled: bool = False) -> List[Location]:
        query = self.db.query(Location)
        if not include_disabled:
            query = query.filter(Location.is_disabled.is_(False))
        return query.order_by(Location.name).all()

    def upsert_location(self, values: Dict[str, Any]) -> Location:
        """Create the location or overwrite it with the latest payload data."""
        location = self.get_location_by_guid(values["external_guid"])
        if not location:
            location = Location(**values)
            self.db.add(location)
        else:
            for field, value in values.items():
                setattr(location, field, value)
        self.db.flush()
        return location

    def get_asset(self, asset_id: int) -> Optional[Asset]:
        return self.db.query(Asset).filter(Asset.id == asset_id).first()

    def get_asset_by_guid(self, external_guid: str) -> Optional[Asset]:
        return self.db.query(Asset).filter(Asset.external_guid == external_guid).first()

    def list_assets(self, location_id: Optional[int] = None) -> List[Asset]:
        query = self.db.query(Asset)
        if location_id is not None:
            query = query.filter(Asset.location_id == location_id)
        return query.order_by(Asset.id).all()

    def find_online_assets(self) -> List[Asset]:
        return self.db.query(Asset).filter(
            Asset.is_online.is_(True),
            Asset.is_disabled.is_(False)
        ).order_by(Asset.id).all()

    def snapshot_asset(self, external_guid: str) -> Optional[AssetSnapshot]:
        asset = self.get_asset_by_guid(external_guid)
        if not asset:
            return None
        return AssetSnapshot(
            is_online=bool(asset.is_online),
            battery_voltage=asset.battery_voltage,
            current_level_percent=asset.current_level_percent,
            days_remaining=asset.days_remaining,
        )

    def upsert_asset(self, location_id: int, values: Dict[str, Any]) -> Asset:
        asset = self.get_asset_by_guid(values["external_guid"])
        if not asset:
            asset = Asset(location_id=location_id, **values)
            self.db.add(asset)
        else:
            asset.location_id = location_id
            for field, value in values.items():
                setattr(asset, field, value)
        self.db.flush()
        return asset
