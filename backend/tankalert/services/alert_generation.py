import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from tankalert.config import AlertThresholds
from tankalert.models import Asset, AlertType, AlertSeverity
from tankalert.services.alert_store import AlertStore

logger = logging.getLogger(__name__)


@dataclass
class AlertCandidate:
    alert_type: AlertType
    severity: AlertSeverity
    title: str
    message: str
    current_value: Optional[float] = None
    threshold_value: Optional[float] = None
    previous_value: Optional[float] = None


class AlertGenerator:
    """
    Evaluates an asset's latest state against thresholds and raises alerts.

    Each alert type is checked independently. A breach is suppressed while an
    active alert of the same type exists for the asset; the partial unique
    index on agbot_alerts backs this up when two writers race.
    """

    def __init__(self, db: Session, thresholds: Optional[AlertThresholds] = None, auto_resolve: bool = False):
        self.db = db
        self.thresholds = thresholds or AlertThresholds()
        self.auto_resolve = auto_resolve
        self.store = AlertStore(db)

    def evaluate(self, asset: Asset, previous: Optional[Any] = None,
                 raw_payload: Optional[Dict[str, Any]] = None) -> int:
        """
        Check battery, fuel and connectivity for one asset.

        Args:
            asset: Asset row after the latest upsert
            previous: State before the upsert (Asset or AssetSnapshot), if known
            raw_payload: Source payload, only used for logging context

        Returns:
            Number of alerts created
        """
        asset_id = asset.id
        asset_name = asset.name or asset.serial_number
        candidates = [
            self._check_battery(asset, previous),
            self._check_fuel(asset, previous),
            self._check_offline(asset, previous),
        ]
        recovered = self._recovered_types(asset) if self.auto_resolve else []

        created = 0
        for candidate in candidates:
            if candidate is None:
                continue
            if self._create_if_new(asset_id, asset_name, candidate):
                created += 1

        for alert_type in recovered:
            self.resolve_alert(asset_id, alert_type, notes="Auto-resolved: metric back within threshold")

        if created and raw_payload is not None:
            logger.debug(f"Alerts for {asset_name} raised from payload keys: {sorted(raw_payload.keys())}")
        return created

    def resolve_alert(self, asset_id: int, alert_type: AlertType, notes: Optional[str] = None) -> int:
        """Mark the active alert of this type inactive, clearing the dedup barrier."""
        try:
            resolved = self.store.resolve(asset_id, alert_type, notes)
            self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to resolve {AlertType(alert_type).value} alert for asset {asset_id}: {e}")
            self.db.rollback()
            return 0
        if resolved:
            logger.info(f"Resolved {AlertType(alert_type).value} alert for asset {asset_id}")
        return resolved

    def _create_if_new(self, asset_id: int, asset_name: str, candidate: AlertCandidate) -> bool:
        alert_type = candidate.alert_type.value
        try:
            if self.store.find_active(asset_id, candidate.alert_type):
                logger.info(f"Suppressed duplicate {alert_type} alert for {asset_name}: active alert exists")
                return False

            self.store.create(
                asset_id,
                candidate.alert_type,
                severity=candidate.severity.value,
                title=candidate.title,
                message=candidate.message,
                current_value=candidate.current_value,
                threshold_value=candidate.threshold_value,
                previous_value=candidate.previous_value,
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Suppressed duplicate {alert_type} alert for {asset_name}: created concurrently")
            return False
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create {alert_type} alert for {asset_name}: {e}")
            return False

        logger.info(f"Created {candidate.severity.value} {alert_type} alert for {asset_name}")
        return True

    def _check_battery(self, asset: Asset, previous: Optional[Any]) -> Optional[AlertCandidate]:
        voltage = asset.battery_voltage
        if voltage is None or voltage >= self.thresholds.battery_warning:
            return None

        critical = voltage < self.thresholds.battery_critical
        threshold = self.thresholds.battery_critical if critical else self.thresholds.battery_warning
        name = asset.name or asset.serial_number
        return AlertCandidate(
            alert_type=AlertType.LOW_BATTERY,
            severity=AlertSeverity.CRITICAL if critical else AlertSeverity.WARNING,
            title=f"{'Critical' if critical else 'Low'} battery: {name}",
            message=f"Battery voltage is {voltage:.2f}V (threshold {threshold}V)",
            current_value=voltage,
            threshold_value=threshold,
            previous_value=getattr(previous, "battery_voltage", None),
        )

    def _check_fuel(self, asset: Asset, previous: Optional[Any]) -> Optional[AlertCandidate]:
        name = asset.name or asset.serial_number
        days = asset.days_remaining

        # Days remaining takes priority over the fill percentage when reported
        if days is not None:
            if days <= self.thresholds.fuel_days_critical:
                severity, threshold = AlertSeverity.CRITICAL, self.thresholds.fuel_days_critical
            elif days <= self.thresholds.fuel_days_warning:
                severity, threshold = AlertSeverity.WARNING, self.thresholds.fuel_days_warning
            else:
                return None
            return AlertCandidate(
                alert_type=AlertType.LOW_FUEL,
                severity=severity,
                title=f"Low fuel: {name}",
                message=f"{days} days of fuel remaining (threshold {threshold:g} days)",
                current_value=float(days),
                threshold_value=threshold,
                previous_value=getattr(previous, "days_remaining", None),
            )

        level = asset.current_level_percent
        if level is None:
            return None
        if level <= self.thresholds.fuel_percent_critical:
            severity, threshold = AlertSeverity.CRITICAL, self.thresholds.fuel_percent_critical
        elif level <= self.thresholds.fuel_percent_warning:
            severity, threshold = AlertSeverity.WARNING, self.thresholds.fuel_percent_warning
        else:
            return None
        return AlertCandidate(
            alert_type=AlertType.LOW_FUEL,
            severity=severity,
            title=f"Low fuel: {name}",
            message=f"Tank is at {level:.1f}% (threshold {threshold:g}%)",
            current_value=level,
            threshold_value=threshold,
            previous_value=getattr(previous, "current_level_percent", None),
        )

    def _check_offline(self, asset: Asset, previous: Optional[Any]) -> Optional[AlertCandidate]:
        # Edge-triggered: only the online -> offline transition raises
        if previous is None or not previous.is_online or asset.is_online:
            return None
        name = asset.name or asset.serial_number
        return AlertCandidate(
            alert_type=AlertType.DEVICE_OFFLINE,
            severity=AlertSeverity.WARNING,
            title=f"Device offline: {name}",
            message=f"Device {asset.serial_number} stopped reporting as online",
            current_value=0.0,
            previous_value=1.0,
        )

    def _recovered_types(self, asset: Asset) -> List[AlertType]:
        recovered = []
        if asset.battery_voltage is not None and asset.battery_voltage >= self.thresholds.battery_warning:
            recovered.append(AlertType.LOW_BATTERY)
        if asset.days_remaining is not None:
            if asset.days_remaining > self.thresholds.fuel_days_warning:
                recovered.append(AlertType.LOW_FUEL)
        elif asset.current_level_percent is not None and asset.current_level_percent > self.thresholds.fuel_percent_warning:
            recovered.append(AlertType.LOW_FUEL)
        if asset.is_online:
            recovered.append(AlertType.DEVICE_OFFLINE)
        return recovered
