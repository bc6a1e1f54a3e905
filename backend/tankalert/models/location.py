from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, BigInteger
from sqlalchemy.orm import relationship
from tankalert.database import Base, utcnow


class Location(Base):
    """A physical site reporting through the Gasbot platform."""
    __tablename__ = "agbot_locations"

    id = Column(Integer, primary_key=True, index=True)
    external_guid = Column(String(255), unique=True, nullable=False, index=True)  # location-<slug>
    name = Column(String(255), nullable=False)
    location_guid = Column(String(255), nullable=True)  # Upstream LocationGuid

    # Customer / tenancy
    customer_name = Column(String(255), nullable=True)
    customer_guid = Column(String(255), nullable=True)

    # Address
    address = Column(String(500), nullable=True)
    state = Column(String(50), nullable=True)
    postcode = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True, default="Australia")
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # Aggregate status
    calibrated_fill_level = Column(Float, nullable=True)
    is_online = Column(Boolean, default=False)
    installation_status = Column(Integer, nullable=True)
    daily_consumption = Column(Float, nullable=True)
    days_remaining = Column(Integer, nullable=True)
    last_telemetry_at = Column(DateTime, nullable=True)
    last_telemetry_epoch = Column(BigInteger, nullable=True)
    is_disabled = Column(Boolean, default=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    assets = relationship("Asset", back_populates="location")

    def __repr__(self):
        return f"<Location(id={self.id}, guid='{self.external_guid}', name='{self.name}')>"
