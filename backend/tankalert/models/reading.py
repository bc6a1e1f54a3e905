from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, Boolean, String, BigInteger, Index
from sqlalchemy.orm import relationship
from tankalert.database import Base, utcnow


class Reading(Base):
    """Immutable telemetry sample. Rows are only ever appended."""
    __tablename__ = "agbot_readings"

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey("agbot_assets.id"), nullable=False, index=True)
    reading_at = Column(DateTime, nullable=False, index=True)

    level_percent = Column(Float, nullable=True)
    raw_percent = Column(Float, nullable=True)
    level_liters = Column(Float, nullable=True)

    battery_voltage = Column(Float, nullable=True)
    temperature_c = Column(Float, nullable=True)
    is_online = Column(Boolean, default=False)
    device_state = Column(String(50), nullable=True)

    # Platform estimates at sample time
    daily_consumption = Column(Float, nullable=True)
    days_remaining = Column(Integer, nullable=True)
    telemetry_epoch = Column(BigInteger, nullable=True)

    created_at = Column(DateTime, default=utcnow)

    # Relationships
    asset = relationship("Asset", back_populates="readings")

    # Composite index for window queries
    __table_args__ = (
        Index('ix_agbot_readings_asset_reading_at', 'asset_id', 'reading_at'),
    )

    def __repr__(self):
        return f"<Reading(id={self.id}, reading_at='{self.reading_at}', level={self.level_percent})>"
