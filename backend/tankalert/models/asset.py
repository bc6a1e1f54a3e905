from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, BigInteger, ForeignKey, JSON
from sqlalchemy.orm import relationship
from tankalert.database import Base, utcnow


class Asset(Base):
    """A monitored tank and the telemetry device fitted to it."""
    __tablename__ = "agbot_assets"

    id = Column(Integer, primary_key=True, index=True)
    location_id = Column(Integer, ForeignKey("agbot_locations.id"), nullable=False, index=True)
    external_guid = Column(String(255), unique=True, nullable=False, index=True)  # asset-<slug>
    name = Column(String(255), nullable=True)
    serial_number = Column(String(100), nullable=False)
    device_serial = Column(String(100), nullable=True)
    asset_guid = Column(String(255), nullable=True)  # Upstream AssetGuid
    profile_name = Column(String(255), nullable=True)
    commodity = Column(String(100), nullable=True)

    # Device status
    is_online = Column(Boolean, default=False)
    is_disabled = Column(Boolean, default=False)
    device_state = Column(String(50), nullable=True)
    battery_voltage = Column(Float, nullable=True)
    temperature_c = Column(Float, nullable=True)

    # Tank level
    capacity_liters = Column(Float, nullable=True)
    current_level_liters = Column(Float, nullable=True)
    current_level_percent = Column(Float, nullable=True)  # Calibrated
    current_raw_percent = Column(Float, nullable=True)
    ullage_liters = Column(Float, nullable=True)

    # Platform estimates
    daily_consumption_liters = Column(Float, nullable=True)
    days_remaining = Column(Integer, nullable=True)
    last_telemetry_at = Column(DateTime, nullable=True)
    last_telemetry_epoch = Column(BigInteger, nullable=True)

    # Our own regression estimates
    calculated_daily_consumption = Column(Float, nullable=True)
    calculated_days_remaining = Column(Integer, nullable=True)
    consumption_confidence = Column(String(20), nullable=True)  # high, medium, low
    last_consumption_calc_at = Column(DateTime, nullable=True)

    raw_data = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    location = relationship("Location", back_populates="assets")
    readings = relationship("Reading", back_populates="asset")
    alerts = relationship("Alert", back_populates="asset")

    def __repr__(self):
        return f"<Asset(id={self.id}, serial='{self.serial_number}', level={self.current_level_percent})>"
