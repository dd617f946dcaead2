import importlib
import sqlite3

from fastapi.testclient import TestClient

from src.cornhole_practice.storage import StoreError


def _client(tmp_path, monkeypatch, name="api.db"):
    monkeypatch.setenv("CORNHOLE_DB_PATH", str(tmp_path / name))
    api = importlib.import_module("src.cornhole_practice.api")
    api = importlib.reload(api)
    return api, TestClient(api.app)


def _play_full_session(client, results=("in_hole", "on_board", "miss", "in_hole")):
    for _ in range(10):
        for result in results:
            r = client.post("/session/throw", json={"result": result})
            assert r.status_code == 200
    return r.json()


def test_practice_session_flow(tmp_path, monkeypatch):
    _, client = _client(tmp_path, monkeypatch)

    r = client.get("/health")
    assert r.status_code == 200

    r = client.get("/session")
    assert r.json()["state"] == "ready"

    r = client.post("/session/new")
    assert r.status_code == 200
    assert r.json()["state"] == "in_progress"

    status = _play_full_session(client)
    assert status["state"] == "completed"
    assert status["current_ppr"] == 7.0

    r = client.post("/session/throw", json={"result": "in_hole"})
    assert r.json()["throws_recorded"] == 40

    r = client.post("/session/undo")
    assert r.json()["state"] == "in_progress"
    r = client.post("/session/throw", json={"result": "in_hole"})
    assert r.json()["state"] == "completed"

    r = client.post("/session/save", json={"bag_type": "Pro", "throwing_style": "Roll"})
    assert r.status_code == 200
    saved = r.json()
    assert saved["points_per_round"] == 7.0
    assert saved["total_bags_in_hole"] == 20
    assert saved["in_hole_percentage"] == 50.0

    r = client.get("/session")
    assert r.json()["state"] == "ready"

    r = client.get("/summaries")
    page = r.json()
    assert page["total"] == 1
    assert page["has_more"] is False
    assert page["summaries"][0]["id"] == saved["id"]


def test_invalid_throw_rejected(tmp_path, monkeypatch):
    _, client = _client(tmp_path, monkeypatch, "invalid.db")
    client.post("/session/new")
    r = client.post("/session/throw", json={"result": "leaner"})
    assert r.status_code == 422


def test_summary_label_edit_and_delete(tmp_path, monkeypatch):
    _, client = _client(tmp_path, monkeypatch, "edit.db")
    client.post("/session/new")
    _play_full_session(client)
    saved = client.post("/session/save", json={}).json()
    assert saved["bag_type"] == "Default"

    r = client.patch(f"/summaries/{saved['id']}", json={"bag_type": "Slick"})
    assert r.status_code == 200
    assert r.json()["bag_type"] == "Slick"
    assert r.json()["points_per_round"] == saved["points_per_round"]

    r = client.delete(f"/summaries/{saved['id']}")
    assert r.status_code == 200
    r = client.get(f"/summaries/{saved['id']}")
    assert r.status_code == 404
    r = client.delete(f"/summaries/{saved['id']}")
    assert r.status_code == 404


def test_failed_save_keeps_session(tmp_path, monkeypatch):
    api, client = _client(tmp_path, monkeypatch, "fail.db")
    client.post("/session/new")
    before = _play_full_session(client)

    def broken_create(*args, **kwargs):
        raise StoreError("database is locked")

    monkeypatch.setattr(api.store, "create_summary", broken_create)

    r = client.post("/session/save", json={"bag_type": "Default"})
    assert r.status_code == 503
    assert client.get("/session").json() == before


def test_analytics_endpoints(tmp_path, monkeypatch):
    _, client = _client(tmp_path, monkeypatch, "analytics.db")

    r = client.get("/analytics")
    assert r.status_code == 200
    assert r.json()["best_session_ppr"] is None

    for bag_type, results in (("Pro", ("in_hole",) * 4), ("Slick", ("on_board",) * 4)):
        client.post("/session/new")
        _play_full_session(client, results)
        client.post("/session/save", json={"bag_type": bag_type})

    overview = client.get("/analytics").json()
    assert overview["total_sessions"] == 2
    assert overview["average_ppr"] == 8.0
    assert overview["total_bags_thrown"] == 80
    assert overview["four_bagger_rate"] == 5.0
    assert overview["throw_distribution"] == {"in_hole": 50.0, "on_board": 50.0, "off_board": 0.0}
    assert overview["ppr_trend"] == 0.0
    assert overview["most_four_baggers"] == 10

    placements = client.get("/analytics/placements").json()
    assert [p["points_per_round"] for p in placements] == [12.0, 4.0]

    compare = client.get("/analytics/compare", params={"by": "bag_type"}).json()
    assert [row["label"] for row in compare] == ["Pro", "Slick"]

    r = client.get("/analytics/compare", params={"by": "bogus"})
    assert r.status_code == 400


def test_label_settings(tmp_path, monkeypatch):
    _, client = _client(tmp_path, monkeypatch, "labels.db")

    r = client.get("/settings/bag-types")
    assert r.json() == {"labels": ["Default"], "default": "Default"}

    r = client.post("/settings/bag-types", json={"name": "Pro"})
    assert r.json()["labels"] == ["Default", "Pro"]
    r = client.post("/settings/bag-types", json={"name": "Pro"})
    assert r.status_code == 400

    r = client.put("/settings/bag-types/default", json={"name": "Pro"})
    assert r.json()["default"] == "Pro"

    r = client.delete("/settings/bag-types/Default")
    assert r.status_code == 400
    r = client.delete("/settings/bag-types/Pro")
    assert r.json() == {"labels": ["Default"], "default": "Default"}

    r = client.post("/settings/throwing-styles", json={"name": "Roll"})
    assert r.json() == {"labels": ["Roll"], "default": None}
    r = client.put("/settings/throwing-styles/default", json={"name": "Roll"})
    assert r.json()["default"] == "Roll"
    r = client.delete("/settings/throwing-styles/Roll")
    assert r.json() == {"labels": [], "default": None}
    r = client.delete("/settings/throwing-styles/Roll")
    assert r.status_code == 404


def test_double_save_conflicts(tmp_path, monkeypatch):
    _, client = _client(tmp_path, monkeypatch, "double.db")
    client.post("/session/new")
    _play_full_session(client)

    assert client.post("/session/save", json={}).status_code == 200
    r = client.post("/session/save", json={})
    assert r.status_code == 409
    assert client.get("/summaries").json()["total"] == 1


def test_store_failures_map_to_503(tmp_path, monkeypatch):
    _, client = _client(tmp_path, monkeypatch, "broken.db")
    with sqlite3.connect(tmp_path / "broken.db") as conn:
        conn.execute("DROP TABLE settings")
        conn.execute("DROP TABLE summaries")

    assert client.get("/settings/bag-types").status_code == 503
    assert client.post("/settings/throwing-styles", json={"name": "Roll"}).status_code == 503
    assert client.get("/summaries/abc").status_code == 503
    assert client.get("/analytics").status_code == 503


def test_patch_clears_throwing_style(tmp_path, monkeypatch):
    _, client = _client(tmp_path, monkeypatch, "clear.db")
    client.post("/session/new")
    _play_full_session(client)
    saved = client.post("/session/save", json={"throwing_style": "Roll"}).json()

    r = client.patch(f"/summaries/{saved['id']}", json={"bag_type": "Pro"})
    assert r.json()["throwing_style"] == "Roll"

    r = client.patch(f"/summaries/{saved['id']}", json={"throwing_style": None})
    assert r.status_code == 200
    assert r.json()["throwing_style"] is None
    assert r.json()["bag_type"] == "Pro"
