from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, Text, Index
from sqlalchemy.orm import relationship
import enum
from tankalert.database import Base, utcnow


class AlertType(str, enum.Enum):
    LOW_BATTERY = "low_battery"
    LOW_FUEL = "low_fuel"
    DEVICE_OFFLINE = "device_offline"


class AlertSeverity(str, enum.Enum):
    WARNING = "warning"
    CRITICAL = "critical"


class Alert(Base):
    __tablename__ = "agbot_alerts"

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey("agbot_assets.id"), nullable=False, index=True)
    alert_type = Column(String(50), nullable=False)
    severity = Column(String(20), nullable=False, default=AlertSeverity.WARNING.value)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)

    # Values captured at trigger time
    current_value = Column(Float, nullable=True)
    threshold_value = Column(Float, nullable=True)
    previous_value = Column(Float, nullable=True)

    # Lifecycle
    is_active = Column(Boolean, nullable=False, default=True)
    triggered_at = Column(DateTime, default=utcnow)
    resolved_at = Column(DateTime, nullable=True)
    resolution_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow)

    # Relationships
    asset = relationship("Asset", back_populates="alerts")

    # At most one active alert per asset and type
    __table_args__ = (
        Index(
            'uq_agbot_alerts_active_asset_type',
            'asset_id', 'alert_type',
            unique=True,
            postgresql_where=is_active.is_(True),
            sqlite_where=is_active.is_(True),
        ),
    )

    def __repr__(self):
        return f"<Alert(id={self.id}, asset_id={self.asset_id}, type='{self.alert_type}', active={self.is_active})>"
