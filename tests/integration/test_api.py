"""Integration tests for the public and admin API using TestClient.

The app is assembled the way ``create_app`` does it, but components are put
on ``app.state`` directly: an in-memory store driven by FakeClock and a
FakeResultsProvider in place of WebScorer.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.admin_routes import admin_router
from src.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from src.api.routes import router as api_router
from src.services.lifecycle_service import LifecycleService
from tests.conftest import FakeClock, FakeResultsProvider


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _build_app(store, registry, engine, settings_service, clock) -> FastAPI:
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(api_router)
    app.include_router(admin_router)

    app.state.config = {"app": {"version": "9.9.9"}, "provider": {"configured": True}}
    app.state.kv_store = store
    app.state.registry = registry
    app.state.result_cache = engine
    app.state.settings_service = settings_service
    app.state.lifecycle = LifecycleService(registry, engine, clock=clock)
    return app


@pytest.fixture()
def client(store, registry, engine, settings_service, clock) -> TestClient:
    return TestClient(_build_app(store, registry, engine, settings_service, clock))


def _create_event(client: TestClient, **overrides) -> dict:
    body = {"name": "Hakuba Trail Festival", "date": "2025-06-15", "description": "Summer"}
    body.update(overrides)
    response = client.post("/api/v1/admin/events", json=body)
    assert response.status_code == 201
    return response.json()["data"]


def _create_race(client: TestClient, event_id: str, **overrides) -> dict:
    body = {"name": "21K", "category": "Open", "provider_race_id": "371034"}
    body.update(overrides)
    response = client.post(f"/api/v1/admin/events/{event_id}/races", json=body)
    assert response.status_code == 201
    return response.json()["data"]


def _set_status(client: TestClient, race_id: str, status: str):
    return client.put(f"/api/v1/admin/races/{race_id}/status", json={"status": status})


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "version": "9.9.9",
            "kv_backend": "memory",
            "provider_configured": True,
        }


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class TestResults:
    def test_unknown_race_is_404(self, client: TestClient) -> None:
        response = client.get("/api/v1/races/nope/results")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "NotFoundError"
        assert body["code"] == "NOT_FOUND"

    def test_miss_then_hit(
        self, client: TestClient, clock: FakeClock, provider: FakeResultsProvider,
        webscorer_document
    ) -> None:
        race = _create_race(client, _create_event(client)["id"])
        url = f"/api/v1/races/{race['id']}/results"

        first = client.get(url).json()
        clock.advance(60)
        second = client.get(url).json()

        assert first["success"] is True
        assert first["data"] == webscorer_document
        assert first["cache_hit"] is False
        assert first["cache_age"] == 0
        assert first["last_updated"] == "2025-06-15T09:00:00.000Z"
        assert second["cache_hit"] is True
        assert second["cache_age"] == 60
        assert len(provider.calls) == 1

    def test_force_query_and_post_refetch(
        self, client: TestClient, provider: FakeResultsProvider
    ) -> None:
        race = _create_race(client, _create_event(client)["id"])
        url = f"/api/v1/races/{race['id']}/results"

        client.get(url)
        forced = client.get(url, params={"force": "true"}).json()
        posted = client.post(url).json()

        assert forced["cache_hit"] is False
        assert posted["cache_hit"] is False
        assert len(provider.calls) == 3

    def test_race_without_provider_id_is_400(self, client: TestClient) -> None:
        race = _create_race(client, _create_event(client)["id"], provider_race_id=None)

        response = client.get(f"/api/v1/races/{race['id']}/results")

        assert response.status_code == 400
        assert response.json()["code"] == "CONFIGURATION_ERROR"

    def test_upstream_failure_with_cold_cache_is_502(
        self, client: TestClient, provider: FakeResultsProvider, failing_error
    ) -> None:
        race = _create_race(client, _create_event(client)["id"])
        provider.error = failing_error

        response = client.get(f"/api/v1/races/{race['id']}/results")

        assert response.status_code == 502
        assert response.json()["code"] == "EXTERNAL_API_ERROR"

    def test_upstream_failure_serves_stale(
        self, client: TestClient, clock: FakeClock, provider: FakeResultsProvider,
        failing_error
    ) -> None:
        race = _create_race(client, _create_event(client)["id"])
        url = f"/api/v1/races/{race['id']}/results"
        client.get(url)
        client.put(
            "/api/v1/admin/settings/cache",
            json={"race_results_ttl": 30, "event_list_ttl": 3600, "dashboard_stats_ttl": 300},
        )
        clock.advance(100)
        provider.error = failing_error

        response = client.get(url)

        assert response.status_code == 200
        body = response.json()
        assert body["cache_hit"] is True
        assert body["cache_age"] == 100
        assert len(provider.calls) == 2

    def test_normalized_view(self, client: TestClient) -> None:
        race = _create_race(client, _create_event(client)["id"])

        body = client.get(f"/api/v1/races/{race['id']}/results/normalized").json()

        assert body["cache_hit"] is False
        assert body["data"]["race_info"]["location"] == "Hakuba, Japan"
        assert [g["name"] for g in body["data"]["results"]] == ["Overall", "Women 30-39", "M"]


# ---------------------------------------------------------------------------
# Events & races
# ---------------------------------------------------------------------------


class TestEventsAndRaces:
    def test_public_event_listing(self, client: TestClient) -> None:
        _create_event(client, name="Spring Ultra", date="2025-04-01")
        _create_event(client, name="Autumn Sky", date="2025-10-01")

        all_events = client.get("/api/v1/events").json()
        upcoming = client.get("/api/v1/events", params={"status": "upcoming"}).json()

        assert [e["name"] for e in all_events["data"]] == ["Autumn Sky", "Spring Ultra"]
        assert [e["name"] for e in upcoming["data"]] == ["Autumn Sky"]
        assert "cache_hit" not in all_events

    def test_event_detail_includes_races(self, client: TestClient) -> None:
        event = _create_event(client)
        race = _create_race(client, event["id"])

        body = client.get(f"/api/v1/events/{event['id']}").json()

        assert body["data"]["event"]["status"] == "active"
        assert [r["id"] for r in body["data"]["races"]] == [race["id"]]

    def test_invalid_event_date_is_400(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/admin/events", json={"name": "Run", "date": "June 15"}
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_missing_body_field_is_422(self, client: TestClient) -> None:
        response = client.post("/api/v1/admin/events", json={"name": "Run"})
        assert response.status_code == 422

    def test_race_crud(self, client: TestClient) -> None:
        race = _create_race(client, _create_event(client)["id"])
        url = f"/api/v1/admin/races/{race['id']}"

        edited = client.put(url, json={"name": "Half", "provider_race_id": "400001"}).json()
        assert edited["data"]["name"] == "Half"
        assert client.get(f"/api/v1/races/{race['id']}").json()["data"]["status"] == "preparing"

        deleted = client.delete(url)
        assert deleted.status_code == 200
        assert client.get(url).status_code == 404

    def test_delete_event_reports_races(self, client: TestClient) -> None:
        event = _create_event(client)
        race = _create_race(client, event["id"])
        client.get(f"/api/v1/races/{race['id']}/results")

        body = client.delete(f"/api/v1/admin/events/{event['id']}").json()

        assert body["data"] == {"event_id": event["id"], "deleted_race_ids": [race["id"]]}
        assert client.get(f"/api/v1/races/{race['id']}/results").status_code == 404


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:
    def test_allowed_transitions(self, client: TestClient) -> None:
        race = _create_race(client, _create_event(client)["id"])

        active = _set_status(client, race["id"], "active")
        completed = _set_status(client, race["id"], "completed")

        assert active.json()["data"]["status"] == "active"
        assert completed.json()["message"] == "Race status changed to completed"

    def test_skipping_active_is_409(self, client: TestClient) -> None:
        race = _create_race(client, _create_event(client)["id"])

        response = _set_status(client, race["id"], "completed")

        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_TRANSITION"

    def test_unknown_status_is_400(self, client: TestClient) -> None:
        race = _create_race(client, _create_event(client)["id"])
        assert _set_status(client, race["id"], "finished").status_code == 400

    def test_completed_results_survive_a_day(
        self, client: TestClient, clock: FakeClock, provider: FakeResultsProvider
    ) -> None:
        race = _create_race(client, _create_event(client)["id"])
        _set_status(client, race["id"], "active")
        _set_status(client, race["id"], "completed")
        calls = len(provider.calls)

        clock.advance(24 * 3600)
        body = client.get(f"/api/v1/races/{race['id']}/results").json()

        assert body["cache_hit"] is True
        assert body["cache_age"] == 24 * 3600
        assert len(provider.calls) == calls


# ---------------------------------------------------------------------------
# Settings & cache control
# ---------------------------------------------------------------------------


class TestSettings:
    def test_public_settings_defaults(self, client: TestClient) -> None:
        body = client.get("/api/v1/settings/cache").json()
        assert body["data"] == {
            "race_results_ttl": 180,
            "event_list_ttl": 3600,
            "dashboard_stats_ttl": 300,
        }

    def test_admin_settings_round_trip(self, client: TestClient) -> None:
        initial = client.get("/api/v1/admin/settings").json()
        assert initial["data"]["cache"]["race_results_ttl"] == 180

        response = client.put(
            "/api/v1/admin/settings/cache",
            json={"race_results_ttl": 60, "event_list_ttl": 600, "dashboard_stats_ttl": 120},
        )

        assert response.status_code == 200
        assert client.get("/api/v1/settings/cache").json()["data"]["race_results_ttl"] == 60

    def test_out_of_range_ttl_is_400(self, client: TestClient) -> None:
        response = client.put(
            "/api/v1/admin/settings/cache",
            json={"race_results_ttl": 5, "event_list_ttl": 600, "dashboard_stats_ttl": 120},
        )
        assert response.status_code == 400
        assert client.get("/api/v1/settings/cache").json()["data"]["race_results_ttl"] == 180

    @pytest.mark.parametrize(
        "path", ["/api/v1/admin/settings/cache/clear", "/api/v1/admin/settings/data/clear-results"]
    )
    def test_clear_endpoints(
        self, client: TestClient, provider: FakeResultsProvider, path: str
    ) -> None:
        race = _create_race(client, _create_event(client)["id"])
        client.get(f"/api/v1/races/{race['id']}/results")

        body = client.post(path).json()

        assert body["data"] == {"cleared_count": 2, "race_ids": [race["id"]]}
        client.get(f"/api/v1/races/{race['id']}/results")
        assert len(provider.calls) == 2

    def test_kv_connection_self_test(self, client: TestClient) -> None:
        body = client.get("/api/v1/admin/test/kv-connection").json()
        assert body["data"]["backend"] == "memory"
        assert body["data"]["connection_status"] == "success"
