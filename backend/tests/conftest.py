"""Shared fixtures and factories for TankAlert tests."""

from __future__ import annotations

import os

# Must be set before tankalert.config builds its settings singleton
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tankalert.config import Settings, get_settings
from tankalert.database import Base, get_db
from tankalert.main import app
from tankalert.models import Asset, Location, Reading

NOW = datetime(2026, 10, 19, 12, 0, 0)
WEBHOOK_SECRET = "test-webhook-secret"
AUTH_HEADERS = {"Authorization": f"Bearer {WEBHOOK_SECRET}"}


def fixed_clock() -> datetime:
    return NOW


# ── Helper: Gasbot payload with healthy defaults ─────────────────────────


def make_payload(
    *,
    site: str | None = "Site A",
    serial: str | None = "SN-001",
    online: bool = True,
    battery: float | None = 3.6,
    level: float | None = 60.0,
    litres: float | None = 600.0,
    capacity: float | None = 1000.0,
    days_remaining: int | None = 30,
    **extra,
) -> dict:
    payload = {
        "LocationId": site,
        "TenancyName": "Great Southern Fuels",
        "LocationAddress": "12 Main St, Kalgoorlie, WA, 6430, Australia",
        "AssetSerialNumber": serial,
        "AssetProfileName": f"Diesel Tank {serial}",
        "AssetProfileWaterCapacity": capacity,
        "AssetReportedLitres": litres,
        "AssetCalibratedFillLevel": level,
        "AssetDaysRemaining": days_remaining,
        "DeviceOnline": online,
        "DeviceBatteryVoltage": battery,
    }
    payload.update(extra)
    return {k: v for k, v in payload.items() if v is not None}


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite://",
        "gasbot_webhook_secret": WEBHOOK_SECRET,
        "scheduler_enabled": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


# ── Helper: registry rows ────────────────────────────────────────────────


def make_location(db, *, name: str = "Site A", **overrides) -> Location:
    values = {
        "external_guid": f"location-{name.lower().replace(' ', '-')}",
        "name": name,
        "is_online": True,
        "is_disabled": False,
    }
    values.update(overrides)
    location = Location(**values)
    db.add(location)
    db.commit()
    return location


def make_asset(
    db,
    location: Location | None = None,
    *,
    serial: str = "SN-001",
    **overrides,
) -> Asset:
    if location is None:
        location = make_location(db, name=f"Site {serial}")
    values = {
        "location_id": location.id,
        "external_guid": f"asset-{serial.lower()}",
        "serial_number": serial,
        "name": f"Tank {serial}",
        "is_online": True,
        "is_disabled": False,
        "battery_voltage": 3.6,
        "current_level_percent": 60.0,
        "current_level_liters": 600.0,
        "capacity_liters": 1000.0,
        "days_remaining": 30,
    }
    values.update(overrides)
    asset = Asset(**values)
    db.add(asset)
    db.commit()
    return asset


def add_reading(
    db,
    asset: Asset,
    reading_at: datetime,
    *,
    level: float | None = None,
    litres: float | None = None,
    **overrides,
) -> Reading:
    reading = Reading(
        asset_id=asset.id,
        reading_at=reading_at,
        level_percent=level,
        level_liters=litres,
        is_online=True,
        **overrides,
    )
    db.add(reading)
    db.commit()
    return reading


def hours_ago(hours: float) -> datetime:
    return NOW - timedelta(hours=hours)


# ── Fixtures ─────────────────────────────────────────────────────────────


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def client(db, settings):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()
