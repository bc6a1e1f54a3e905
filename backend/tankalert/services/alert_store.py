from typing import List, Optional
from sqlalchemy.orm import Session

from tankalert.database import utcnow
from tankalert.models import Alert, AlertType


class AlertStore:
    def __init__(self, db: Session):
        self.db = db

    def create(self, asset_id: int, alert_type: AlertType, **values) -> Alert:
        alert = Alert(asset_id=asset_id, alert_type=AlertType(alert_type).value, is_active=True, **values)
        self.db.add(alert)
        self.db.flush()
        return alert

    def find_active(self, asset_id: int, alert_type: AlertType) -> Optional[Alert]:
        return self.db.query(Alert).filter(
            Alert.asset_id == asset_id,
            Alert.alert_type == AlertType(alert_type).value,
            Alert.is_active.is_(True)
        ).first()

    def list_active_by_asset(self, asset_id: int) -> List[Alert]:
        return self.db.query(Alert).filter(
            Alert.asset_id == asset_id,
            Alert.is_active.is_(True)
        ).order_by(Alert.triggered_at.desc()).all()

    def list_active(self, limit: int = 200) -> List[Alert]:
        return self.db.query(Alert).filter(
            Alert.is_active.is_(True)
        ).order_by(Alert.triggered_at.desc()).limit(limit).all()

    def resolve(self, asset_id: int, alert_type: AlertType, notes: Optional[str] = None) -> int:
        """Mark active alerts of this type inactive. Returns the number resolved."""
        alerts = self.db.query(Alert).filter(
            Alert.asset_id == asset_id,
            Alert.alert_type == AlertType(alert_type).value,
            Alert.is_active.is_(True)
        ).all()
        resolved_at = utcnow()
        for alert in alerts:
            alert.is_active = False
            alert.resolved_at = resolved_at
            alert.resolution_notes = notes
        self.db.flush()
        return len(alerts)
