"""Tests for the read API: locations, assets, alerts, analytics and sync logs."""

from __future__ import annotations

from tankalert.config import get_settings
from tankalert.main import app
from tankalert.models import AlertType
from tankalert.services.alert_generation import AlertGenerator
from tankalert.services.ingestion import IngestionPipeline
from tests.conftest import AUTH_HEADERS, make_asset, make_location, make_payload, make_settings


def ingest(db, settings, *payloads):
    return IngestionPipeline(db, settings).process_batch(list(payloads))


# ═══════════════════════════════════════════════════════════════════════════
#  Locations and assets
# ═══════════════════════════════════════════════════════════════════════════


class TestLocations:
    def test_list_locations(self, client, db):
        make_location(db, name="Site A")
        make_location(db, name="Site B", is_disabled=True)

        response = client.get("/api/locations")
        assert response.status_code == 200
        assert [loc["name"] for loc in response.json()] == ["Site A"]

        response = client.get("/api/locations", params={"include_disabled": True})
        assert len(response.json()) == 2

    def test_location_detail_includes_assets(self, client, db, settings):
        ingest(db, settings, make_payload(serial="SN-001"), make_payload(serial="SN-002"))
        location_id = client.get("/api/locations").json()[0]["id"]

        body = client.get(f"/api/locations/{location_id}").json()
        assert body["name"] == "Site A"
        assert sorted(a["serial_number"] for a in body["assets"]) == ["SN-001", "SN-002"]

    def test_unknown_location(self, client):
        assert client.get("/api/locations/999").status_code == 404


class TestAssets:
    def test_get_asset(self, client, db):
        asset = make_asset(db)
        body = client.get(f"/api/assets/{asset.id}").json()
        assert body["serial_number"] == "SN-001"
        assert body["current_level_percent"] == 60.0

    def test_list_assets_by_location(self, client, db):
        site_a = make_location(db, name="Site A")
        site_b = make_location(db, name="Site B")
        make_asset(db, site_a, serial="SN-001")
        make_asset(db, site_b, serial="SN-002")

        assert len(client.get("/api/assets").json()) == 2
        body = client.get("/api/assets", params={"location_id": site_b.id}).json()
        assert [a["serial_number"] for a in body] == ["SN-002"]

    def test_unknown_asset(self, client):
        assert client.get("/api/assets/999").status_code == 404
        assert client.get("/api/assets/999/readings").status_code == 404

    def test_readings_history(self, client, db, settings):
        ingest(db, settings, make_payload(level=60, litres=600))
        ingest(db, settings, make_payload(level=55, litres=550))
        asset_id = client.get("/api/locations/1").json()["assets"][0]["id"]

        readings = client.get(f"/api/assets/{asset_id}/readings", params={"hours": 24}).json()
        assert [r["level_percent"] for r in readings] == [60.0, 55.0]
        assert readings[0]["reading_at"].endswith("Z")

    def test_statistics(self, client, db, settings):
        ingest(db, settings, make_payload(level=60, litres=600))
        ingest(db, settings, make_payload(level=50, litres=500))

        body = client.get("/api/assets/1/statistics").json()
        assert body["reading_count"] == 2
        assert body["avg_level_percent"] == 55.0

    def test_refills(self, client, db, settings):
        ingest(db, settings, make_payload(level=20, litres=200))
        ingest(db, settings, make_payload(level=90, litres=900))

        refills = client.get("/api/assets/1/refills").json()
        assert [r["level_percent"] for r in refills] == [90.0]


# ═══════════════════════════════════════════════════════════════════════════
#  Alerts
# ═══════════════════════════════════════════════════════════════════════════


class TestAlerts:
    def test_list_and_resolve(self, client, db):
        asset = make_asset(db, battery_voltage=3.1)
        AlertGenerator(db).evaluate(asset)

        alerts = client.get("/api/alerts").json()
        assert len(alerts) == 1
        assert alerts[0]["alert_type"] == "low_battery"
        assert alerts[0]["triggered_at"].endswith("Z")

        response = client.post(
            f"/api/alerts/{asset.id}/low_battery/resolve",
            json={"notes": "Battery swapped"},
            headers=AUTH_HEADERS,
        )
        assert response.status_code == 200
        assert response.json()["resolved"] == 1
        assert client.get("/api/alerts").json() == []

        response = client.post(f"/api/alerts/{asset.id}/low_battery/resolve", headers=AUTH_HEADERS)
        assert response.status_code == 404

    def test_resolve_requires_token(self, client, db):
        asset = make_asset(db, battery_voltage=3.1)
        AlertGenerator(db).evaluate(asset)

        assert client.post(f"/api/alerts/{asset.id}/low_battery/resolve").status_code == 401
        response = client.post(
            f"/api/alerts/{asset.id}/low_battery/resolve",
            headers={"Authorization": "Bearer wrong-secret"},
        )
        assert response.status_code == 401
        assert len(client.get("/api/alerts").json()) == 1

    def test_filter_by_asset(self, client, db):
        first = make_asset(db, serial="SN-001", battery_voltage=3.1)
        second = make_asset(db, serial="SN-002", days_remaining=2)
        generator = AlertGenerator(db)
        generator.evaluate(first)
        generator.evaluate(second)

        alerts = client.get("/api/alerts", params={"asset_id": second.id}).json()
        assert [a["alert_type"] for a in alerts] == [AlertType.LOW_FUEL.value]

    def test_unknown_alert_type(self, client, db):
        asset = make_asset(db)
        response = client.post(f"/api/alerts/{asset.id}/flooding/resolve", headers=AUTH_HEADERS)
        assert response.status_code == 422


# ═══════════════════════════════════════════════════════════════════════════
#  Analytics
# ═══════════════════════════════════════════════════════════════════════════


class TestAnalyticsEndpoints:
    def test_tank_analytics(self, client, db, settings):
        ingest(db, settings, make_payload(level=60, litres=600))
        ingest(db, settings, make_payload(level=50, litres=500))

        response = client.get("/api/analytics/tanks/1")
        assert response.status_code == 200
        body = response.json()
        assert body["consumption_24h_litres"] == 100
        assert body["trend_indicator"] in {"↑", "↓", "→"}
        assert len(body["sparkline_7d"]) == 7

    def test_tank_analytics_unknown_asset(self, client):
        assert client.get("/api/analytics/tanks/999").status_code == 404
        assert client.get("/api/analytics/tanks/999/consumption").status_code == 404

    def test_fleet_summary(self, client, db, settings):
        ingest(db, settings, make_payload(serial="SN-001"), make_payload(serial="SN-002"))

        body = client.get("/api/analytics/fleet").json()
        assert body["tank_count"] == 2
        assert body["total_consumption_24h"] == 0
        assert body["fleet_trend"] == "stable"

    def test_consumption_estimate(self, client, db):
        asset = make_asset(db)
        body = client.get(f"/api/analytics/tanks/{asset.id}/consumption").json()
        assert body["asset_id"] == asset.id
        assert body["confidence"] == "low"


# ═══════════════════════════════════════════════════════════════════════════
#  Sync
# ═══════════════════════════════════════════════════════════════════════════


class TestSync:
    def test_sync_logs(self, client, db, settings):
        ingest(db, settings, make_payload())
        logs = client.get("/api/sync/logs").json()
        assert len(logs) == 1
        assert logs[0]["sync_type"] == "gasbot_webhook"
        assert logs[0]["status"] == "success"

    def test_provider_types(self, client):
        types = client.get("/api/sync/providers").json()["types"]
        assert [t["id"] for t in types] == ["gasbot_api"]
        assert "Gasbot" in types[0]["description"]

    def test_trigger_requires_token(self, client):
        assert client.post("/api/sync/gasbot").status_code == 401

    def test_trigger_without_credentials(self, client):
        assert client.post("/api/sync/gasbot", headers=AUTH_HEADERS).status_code == 400

    def test_trigger_schedules_sync(self, client, monkeypatch):
        calls = []

        async def fake_sync(settings):
            calls.append(settings)

        monkeypatch.setattr("tankalert.api.sync.run_gasbot_sync", fake_sync)
        app.dependency_overrides[get_settings] = lambda: make_settings(gasbot_api_key="k", gasbot_api_secret="s")

        response = client.post("/api/sync/gasbot", headers=AUTH_HEADERS)
        assert response.status_code == 200
        assert len(calls) == 1


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}
