"""
Tests for the JSON API routes.

These tests verify that:
1. DAL success flags and values map onto JSON responses
2. Budget text falls back to 0 on create
3. Bulk media reports each item separately
4. Geocoding failures surface as null coordinates
5. Reset is only reachable when explicitly enabled
"""
import pytest

from tripflow import api
from tripflow.geocoding import Coordinates
from tests.conftest import count_rows


def create_trip(client, **payload):
    resp = client.post("/api/trips", json={"title": "Trip", **payload})
    assert resp.status_code == 200
    return resp.json()["trip_id"]


class TestHealth:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["ok"] is True


class TestAuthRoutes:

    def test_signup_and_login(self, client):
        assert client.post("/api/auth/login", json={"username": "a", "password": "b"}).status_code == 401

        resp = client.post("/api/auth/signup", json={"username": "a", "password": "b"})
        assert resp.status_code == 200
        assert resp.json()["success"] is True

        assert client.post("/api/auth/login", json={"username": "a", "password": "b"}).status_code == 200
        assert client.post("/api/auth/login", json={"username": "a", "password": "wrong"}).status_code == 401

    def test_signup_requires_fields(self, client):
        resp = client.post("/api/auth/signup", json={"username": "a"})
        assert resp.status_code == 400
        assert resp.json()["success"] is False


class TestTripRoutes:

    def test_create_list_get(self, client):
        trip_id = create_trip(client, title="Paris", destination="Paris", budget=500)

        trips = client.get("/api/trips").json()["trips"]
        assert trips[0]["id"] == trip_id
        assert trips[0]["budget"] == 500

        trip = client.get(f"/api/trips/{trip_id}").json()["trip"]
        assert trip["title"] == "Paris"

    def test_unparseable_budget_becomes_zero(self, client):
        trip_id = create_trip(client, budget="about a grand")
        assert client.get(f"/api/trips/{trip_id}").json()["trip"]["budget"] == 0

    def test_non_finite_budget_becomes_zero(self, client):
        """An overflowing budget must not poison the trip list."""
        for budget in ("1e999", "inf", "-Infinity", "nan", 10 ** 400):
            trip_id = create_trip(client, title="Big", budget=budget)
            assert client.get(f"/api/trips/{trip_id}").json()["trip"]["budget"] == 0

        resp = client.get("/api/trips")
        assert resp.status_code == 200
        assert len(resp.json()["trips"]) == 5

    def test_non_string_title_rejected(self, client):
        resp = client.post("/api/trips", json={"title": 5})
        assert resp.status_code == 400
        assert count_rows("trips") == 0

    def test_out_of_range_id(self, client):
        assert client.get("/api/trips/9223372036854775808").status_code == 404
        assert client.get("/api/trips/9223372036854775808/details").status_code == 404
        assert client.delete("/api/trips/9223372036854775808").status_code == 400

    def test_missing_title_rejected(self, client):
        resp = client.post("/api/trips", json={"destination": "Nowhere"})
        assert resp.status_code == 400
        assert count_rows("trips") == 0

    def test_invalid_json_rejected(self, client):
        resp = client.post("/api/trips", content=b"not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400

    def test_get_missing_trip(self, client):
        assert client.get("/api/trips/999").status_code == 404

    def test_partial_update(self, client):
        trip_id = create_trip(client, title="Old", destination="Rome", budget=100, notes="n")

        resp = client.put(f"/api/trips/{trip_id}", json={"title": "new"})
        assert resp.json()["success"] is True

        trip = client.get(f"/api/trips/{trip_id}").json()["trip"]
        assert trip["title"] == "new"
        assert trip["destination"] == "Rome"
        assert trip["budget"] == 100
        assert trip["notes"] == "n"

    def test_update_missing_trip(self, client):
        resp = client.put("/api/trips/999", json={"title": "x"})
        assert resp.status_code == 400

    def test_delete_is_idempotent(self, client):
        trip_id = create_trip(client)
        assert client.delete(f"/api/trips/{trip_id}").json()["success"] is True
        assert client.delete(f"/api/trips/{trip_id}").json()["success"] is True
        assert client.get(f"/api/trips/{trip_id}").status_code == 404

    def test_details_aggregate(self, client):
        trip_id = create_trip(client, title="Paris")
        client.post(f"/api/trips/{trip_id}/steps", json={"name": "Louvre", "start_date": "2024-06-01"})
        checklist_id = client.post(
            f"/api/trips/{trip_id}/checklists", json={"title": "Packing"}
        ).json()["checklist_id"]
        client.post(f"/api/checklists/{checklist_id}/items", json={"text": "Passport"})

        data = client.get(f"/api/trips/{trip_id}/details").json()
        assert data["trip"]["title"] == "Paris"
        assert [s["name"] for s in data["steps"]] == ["Louvre"]
        assert data["checklists"][0]["items"][0]["text"] == "Passport"
        assert data["checklists"][0]["items"][0]["is_checked"] is False


class TestLocationRoute:

    def test_coordinates_returned(self, client, monkeypatch):
        async def fake_geocode(destination):
            assert destination == "Paris"
            return Coordinates(lat=48.85, lon=2.35)

        monkeypatch.setattr(api, "geocode_destination", fake_geocode)
        trip_id = create_trip(client, destination="Paris")

        resp = client.get(f"/api/trips/{trip_id}/location")
        assert resp.status_code == 200
        assert resp.json()["coordinates"] == {"lat": 48.85, "lon": 2.35}

    def test_unavailable_is_null(self, client, monkeypatch):
        async def fake_geocode(destination):
            return None

        monkeypatch.setattr(api, "geocode_destination", fake_geocode)
        trip_id = create_trip(client, destination="Qwzxv")

        resp = client.get(f"/api/trips/{trip_id}/location")
        assert resp.status_code == 200
        assert resp.json()["coordinates"] is None


class TestStepAndJournalRoutes:

    def test_step_delete_unlinks_entry(self, client):
        trip_id = create_trip(client)
        step_id = client.post(f"/api/trips/{trip_id}/steps", json={"name": "Stop"}).json()["step_id"]
        entry_id = client.post(
            f"/api/trips/{trip_id}/journal",
            json={"title": "Day", "entry_date": "2024-06-01", "step_id": step_id},
        ).json()["entry_id"]

        detail = client.get(f"/api/journal/{entry_id}").json()
        assert detail["step"]["name"] == "Stop"

        assert client.delete(f"/api/steps/{step_id}").json()["success"] is True
        assert client.get(f"/api/steps/{step_id}").status_code == 404

        detail = client.get(f"/api/journal/{entry_id}").json()
        assert detail["entry"]["step_id"] is None
        assert detail["step"] is None

    def test_entry_requires_title_and_date(self, client):
        trip_id = create_trip(client)
        assert client.post(f"/api/trips/{trip_id}/journal", json={"entry_date": "2024-06-01"}).status_code == 400
        assert client.post(f"/api/trips/{trip_id}/journal", json={"title": "T"}).status_code == 400
        resp = client.post(f"/api/trips/{trip_id}/journal", json={"title": 7, "entry_date": "2024-06-01"})
        assert resp.status_code == 400

    def test_bulk_media_reports_each_item(self, client):
        trip_id = create_trip(client)
        entry_id = client.post(
            f"/api/trips/{trip_id}/journal", json={"title": "Day", "entry_date": "2024-06-01"}
        ).json()["entry_id"]

        resp = client.post(f"/api/journal/{entry_id}/media", json={"media": [
            {"media_type": "image", "uri": "file:///1.jpg"},
            {"media_type": "video", "uri": "file:///2.mp4"},
            {"uri": "file:///3.jpg", "description": "defaults to image"},
        ]})
        data = resp.json()
        assert data["success"] is False
        assert [r["success"] for r in data["results"]] == [True, False, True]

        media = client.get(f"/api/journal/{entry_id}/media").json()["media"]
        assert [m["media_type"] for m in media] == ["image", "image"]

        media_id = media[0]["id"]
        assert client.delete(f"/api/media/{media_id}").json()["success"] is True
        assert len(client.get(f"/api/journal/{entry_id}/media").json()["media"]) == 1

    def test_trip_and_step_listings(self, client):
        trip_id = create_trip(client)
        step_id = client.post(f"/api/trips/{trip_id}/steps", json={"name": "Stop"}).json()["step_id"]
        client.post(f"/api/trips/{trip_id}/journal", json={"title": "A", "entry_date": "2024-06-01"})
        client.post(
            f"/api/trips/{trip_id}/journal",
            json={"title": "B", "entry_date": "2024-06-02", "step_id": step_id},
        )

        by_trip = client.get(f"/api/trips/{trip_id}/journal").json()["entries"]
        assert [e["title"] for e in by_trip] == ["B", "A"]

        by_step = client.get(f"/api/steps/{step_id}/journal").json()["entries"]
        assert [e["title"] for e in by_step] == ["B"]


class TestChecklistRoutes:

    def test_item_toggle_and_update(self, client):
        trip_id = create_trip(client)
        checklist_id = client.post(
            f"/api/trips/{trip_id}/checklists", json={"title": "Packing"}
        ).json()["checklist_id"]
        item_id = client.post(
            f"/api/checklists/{checklist_id}/items", json={"text": "Passport", "is_checked": False}
        ).json()["item_id"]

        assert client.post(f"/api/items/{item_id}/toggle").json()["success"] is True
        items = client.get(f"/api/checklists/{checklist_id}/items").json()["items"]
        assert items[0]["is_checked"] is True

        client.put(f"/api/items/{item_id}", json={"is_checked": 0})
        checklist = client.get(f"/api/checklists/{checklist_id}").json()["checklist"]
        assert checklist["items"][0]["is_checked"] is False
        assert checklist["items"][0]["text"] == "Passport"

    def test_checked_flag_must_be_boolean(self, client):
        """The string "false" is not a boolean and must not check the item."""
        trip_id = create_trip(client)
        checklist_id = client.post(
            f"/api/trips/{trip_id}/checklists", json={"title": "Packing"}
        ).json()["checklist_id"]

        resp = client.post(f"/api/checklists/{checklist_id}/items", json={"text": "Hat", "is_checked": "false"})
        assert resp.status_code == 400
        assert count_rows("checklist_items") == 0

        item_id = client.post(
            f"/api/checklists/{checklist_id}/items", json={"text": "Hat", "is_checked": 1}
        ).json()["item_id"]
        for bad in ("false", 2, [], {}):
            assert client.put(f"/api/items/{item_id}", json={"is_checked": bad}).status_code == 400

        items = client.get(f"/api/checklists/{checklist_id}/items").json()["items"]
        assert items[0]["is_checked"] is True

        assert client.put(f"/api/items/{item_id}", json={"is_checked": False}).status_code == 200
        items = client.get(f"/api/checklists/{checklist_id}/items").json()["items"]
        assert items[0]["is_checked"] is False

    def test_toggle_missing_item(self, client):
        assert client.post("/api/items/999/toggle").status_code == 400

    def test_checklist_delete(self, client):
        trip_id = create_trip(client)
        checklist_id = client.post(
            f"/api/trips/{trip_id}/checklists", json={"title": "Todo"}
        ).json()["checklist_id"]
        client.put(f"/api/checklists/{checklist_id}", json={"description": "Before leaving"})
        assert client.get(f"/api/checklists/{checklist_id}").json()["checklist"]["description"] == "Before leaving"

        assert client.delete(f"/api/checklists/{checklist_id}").json()["success"] is True
        assert client.get(f"/api/trips/{trip_id}/checklists").json()["checklists"] == []


class TestResetRoute:

    def test_disabled_by_default(self, client, monkeypatch):
        monkeypatch.delenv("ALLOW_DB_RESET", raising=False)
        create_trip(client)
        assert client.post("/api/admin/reset").status_code == 403
        assert count_rows("trips") == 1

    def test_enabled_reset(self, client, monkeypatch):
        monkeypatch.setenv("ALLOW_DB_RESET", "1")
        create_trip(client)
        resp = client.post("/api/admin/reset")
        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert client.get("/api/trips").json()["trips"] == []
