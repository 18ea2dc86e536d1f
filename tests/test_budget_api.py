"""HTTP contract tests for the budget API."""

import pytest
from fastapi.testclient import TestClient

from api.server import app

DAY = "2025-03-10"
ALICE = {"X-User-Id": "alice"}
BOB = {"X-User-Id": "bob"}


@pytest.fixture
def client(store):
    return TestClient(app)


def _add(client, start, end, category="work", headers=ALICE, day=DAY, **extra):
    return client.post(
        f"/api/budget/days/{day}/allocations",
        json={"category": category, "start_time": start, "end_time": end, **extra},
        headers=headers,
    )


class TestAuth:
    def test_missing_user_header(self, client):
        resp = client.get(f"/api/budget/days/{DAY}/allocations")
        assert resp.status_code == 401

    def test_health_needs_no_user(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_request_id_echoed(self, client):
        resp = client.get("/api/health", headers={"X-Request-ID": "req-test123"})
        assert resp.headers["x-request-id"] == "req-test123"


def test_categories(client):
    resp = client.get("/api/budget/categories")
    assert resp.status_code == 200
    ids = [c["id"] for c in resp.json()]
    assert ids[0] == "work"
    assert "other" in ids


class TestPreferences:
    def test_defaults_then_update(self, client):
        resp = client.get("/api/budget/preferences", headers=ALICE)
        assert resp.json()["total_window_minutes"] == 1020

        resp = client.put(
            "/api/budget/preferences",
            json={"day_start_time": "08:00", "day_end_time": "18:00"},
            headers=ALICE,
        )
        assert resp.status_code == 200
        assert resp.json()["day_start_time"] == "08:00"

    def test_inverted_window_is_400(self, client):
        resp = client.put(
            "/api/budget/preferences",
            json={"day_start_time": "22:00", "day_end_time": "08:00"},
            headers=ALICE,
        )
        assert resp.status_code == 400
        assert client.get("/api/budget/preferences", headers=ALICE).json()["day_start_time"] == "06:00"


class TestAllocations:
    def test_create_and_list(self, client):
        resp = _add(client, "09:00", "10:30", label="Deep work")
        assert resp.status_code == 201
        body = resp.json()
        assert body["duration_minutes"] == 90
        assert body["display_label"] == "Deep work"

        listing = client.get(f"/api/budget/days/{DAY}/allocations", headers=ALICE).json()
        assert listing["total"] == 1
        assert listing["items"][0]["id"] == body["id"]

    def test_duration_in_body_is_rejected(self, client):
        resp = _add(client, "09:00", "10:00", duration_minutes=999)
        assert resp.status_code == 422
        listing = client.get(f"/api/budget/days/{DAY}/allocations", headers=ALICE).json()
        assert listing["items"] == []

    def test_overlap_is_409_with_conflict(self, client):
        first = _add(client, "09:00", "10:00").json()
        resp = _add(client, "09:30", "10:30")
        assert resp.status_code == 409
        assert resp.json()["detail"]["conflict"] == {
            "id": first["id"],
            "start_time": "09:00",
            "end_time": "10:00",
        }

    def test_invalid_interval_is_400(self, client):
        assert _add(client, "10:00", "09:00").status_code == 400

    def test_bad_date_is_400(self, client):
        assert _add(client, "09:00", "10:00", day="2025-13-40").status_code == 400

    def test_unknown_category_is_400(self, client):
        assert _add(client, "09:00", "10:00", category="gaming").status_code == 400

    def test_patch(self, client):
        created = _add(client, "09:00", "10:00", label="Focus").json()
        resp = client.patch(
            f"/api/budget/allocations/{created['id']}",
            json={"end_time": "11:00", "label": None},
            headers=ALICE,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["duration_minutes"] == 120
        assert body["label"] is None
        assert body["category"] == "work"

    def test_patch_with_duration_is_422_and_unchanged(self, client):
        created = _add(client, "09:00", "10:00").json()
        resp = client.patch(
            f"/api/budget/allocations/{created['id']}",
            json={"duration_minutes": 5},
            headers=ALICE,
        )
        assert resp.status_code == 422
        listing = client.get(f"/api/budget/days/{DAY}/allocations", headers=ALICE).json()
        assert listing["items"][0]["duration_minutes"] == 60
        assert listing["items"][0]["end_time"] == "10:00"

    def test_patch_other_users_block_is_404(self, client):
        created = _add(client, "09:00", "10:00").json()
        resp = client.patch(
            f"/api/budget/allocations/{created['id']}", json={"label": "x"}, headers=BOB
        )
        assert resp.status_code == 404

    def test_delete(self, client):
        created = _add(client, "09:00", "10:00").json()
        assert client.delete(f"/api/budget/allocations/{created['id']}", headers=BOB).status_code == 404
        resp = client.delete(f"/api/budget/allocations/{created['id']}", headers=ALICE)
        assert resp.status_code == 200
        assert resp.json()["success"] is True
        again = client.delete(f"/api/budget/allocations/{created['id']}", headers=ALICE)
        assert again.status_code == 404

    def test_users_see_only_their_blocks(self, client):
        _add(client, "09:00", "10:00")
        _add(client, "09:00", "10:00", headers=BOB)
        assert client.get(f"/api/budget/days/{DAY}/allocations", headers=BOB).json()["total"] == 1


def test_summary(client):
    _add(client, "09:00", "10:00")
    _add(client, "17:00", "17:30", category="health")
    body = client.get(f"/api/budget/days/{DAY}/summary", headers=ALICE).json()
    assert body["by_category"] == {"work": 60, "health": 30}
    assert body["allocated_minutes"] == 90
    assert body["remaining_minutes"] == 930


def test_timeline(client):
    _add(client, "05:00", "07:00", category="sleep")
    _add(client, "01:00", "02:00", category="sleep")
    body = client.get(f"/api/budget/days/{DAY}/timeline", headers=ALICE).json()
    assert len(body["blocks"]) == 1
    assert body["blocks"][0]["clipped"] is True
    assert body["hour_markers"][0]["label"] == "6AM"
    assert body["now_pct"] is None


class TestTemplates:
    def test_save_list_load_delete(self, client):
        _add(client, "09:00", "11:00", label="Deep work")
        _add(client, "12:00", "12:30", category="meals")

        resp = client.post("/api/budget/templates", json={"name": "Workday", "date": DAY}, headers=ALICE)
        assert resp.status_code == 201
        template = resp.json()
        assert len(template["blocks"]) == 2

        listing = client.get("/api/budget/templates", headers=ALICE).json()
        assert listing["total"] == 1
        assert client.get("/api/budget/templates", headers=BOB).json()["total"] == 0

        _add(client, "20:00", "21:00", category="admin", day="2025-03-17")
        resp = client.post(
            f"/api/budget/templates/{template['id']}/load", json={"date": "2025-03-17"}, headers=ALICE
        )
        assert resp.status_code == 200
        assert resp.json()["total"] == 2
        target = client.get("/api/budget/days/2025-03-17/allocations", headers=ALICE).json()
        assert [a["start_time"] for a in target["items"]] == ["09:00", "12:00"]

        resp = client.delete(f"/api/budget/templates/{template['id']}", headers=ALICE)
        assert resp.status_code == 200

    def test_load_unknown_template_is_404(self, client):
        resp = client.post(
            "/api/budget/templates/tmpl_missing/load", json={"date": DAY}, headers=ALICE
        )
        assert resp.status_code == 404

    def test_failed_replay_is_409(self, client, store):
        store.insert(
            "time_templates",
            {
                "id": "tmpl_broken",
                "user_id": "alice",
                "name": "Broken",
                "blocks": [
                    {"label": "A", "category": "work", "start_time": "09:00", "end_time": "10:00"},
                    {"label": "B", "category": "nope", "start_time": "11:00", "end_time": "12:00"},
                ],
            },
        )
        resp = client.post("/api/budget/templates/tmpl_broken/load", json={"date": DAY}, headers=ALICE)
        assert resp.status_code == 409
        assert resp.json()["detail"]["block_index"] == 1
        assert client.get(f"/api/budget/days/{DAY}/allocations", headers=ALICE).json()["total"] == 0

    def test_empty_name_is_422(self, client):
        resp = client.post("/api/budget/templates", json={"name": "", "date": DAY}, headers=ALICE)
        assert resp.status_code == 422
