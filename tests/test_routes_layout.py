from __future__ import annotations

import json

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

import familytree.routes.layout as layout_routes
from familytree.main import app

_PAYLOAD = {
    "people": [
        {"id": "R", "name": "Root", "gender": "m", "birth_date": "1900"},
        {"id": "M", "name": "Mary", "gender": "f"},
        {"id": "A", "name": "Anna"},
        {"id": "B", "name": "Bert"},
    ],
    "marriages": [{"id": "F1", "husband_id": "R", "wife_id": "M"}],
    "links": [{"family_id": "F1", "child_id": "A"}, {"family_id": "F1", "child_id": "B"}],
    "root_id": "R",
}


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


def test_health(client) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_post_layout_full(client) -> None:
    r = client.post("/layout", json={**_PAYLOAD, "mode": "full"})
    assert r.status_code == 200
    body = r.json()

    assert body["mode"] == "full"
    assert body["rootId"] == "R"
    assert {n["id"] for n in body["nodes"]} == {"R", "A", "B"}
    root = next(n for n in body["nodes"] if n["id"] == "R")
    assert root["generation"] == 0
    assert root["centerX"] == 0
    assert root["gender"] == "male"
    assert root["birth"] == "1900"
    assert {(e["from"], e["to"]) for e in body["edges"]} == {("R", "A"), ("R", "B")}
    for e in body["edges"]:
        assert e["jY2"] is None
        assert e["generation"] == 1
        assert len(e["points"]) == 4
    assert body["generations"] == [0, 1]
    assert body["spouses"] == {"R": ["M"]}
    assert set(body["bounds"]) == {"minX", "maxX", "minY", "maxY"}
    assert "focusId" not in body


def test_post_layout_focus(client) -> None:
    r = client.post("/layout", json={**_PAYLOAD, "mode": "focus", "focus_id": "A"})
    assert r.status_code == 200
    body = r.json()
    assert body["focusId"] == "A"
    assert body["ancestors"] == ["R", "M"]
    assert body["directChildren"] == []
    assert {n["id"] for n in body["nodes"]} == {"R", "M", "A"}


def test_post_layout_rejects_bad_requests(client) -> None:
    assert client.post("/layout", json={**_PAYLOAD, "mode": "cluster"}).status_code == 422
    assert client.post("/layout", json={**_PAYLOAD, "mode": "focus"}).status_code == 400
    assert client.post("/layout", json={**_PAYLOAD, "mode": "focus", "focus_id": "Z"}).status_code == 404
    r = client.post("/layout", json={**_PAYLOAD, "config": {"grid_columns": 0}})
    assert r.status_code == 400
    assert "grid_columns" in r.json()["detail"]


def test_post_layout_applies_config_overrides() -> None:
    body = layout_routes.LayoutRequest(**_PAYLOAD, mode="full", config={"node_width": 100})
    payload = layout_routes.post_layout(body)
    assert all(n["width"] == 100 for n in payload["nodes"])


def test_post_layout_unknown_root_is_empty() -> None:
    body = layout_routes.LayoutRequest(**{**_PAYLOAD, "root_id": "NOPE"}, mode="compact")
    payload = layout_routes.post_layout(body)
    assert payload["nodes"] == []
    assert payload["bounds"] == {"minX": 0, "maxX": 1000, "minY": 0, "maxY": 1000}


def test_tree_generations_and_direct_tree(client) -> None:
    r = client.post("/tree/generations", json=_PAYLOAD)
    assert r.status_code == 200
    assert r.json()["generations"] == {"A": 1, "B": 1, "M": 0, "R": 0}
    assert r.json()["levels"] == [{"generation": 0, "people": ["M", "R"]}, {"generation": 1, "people": ["A", "B"]}]

    r = client.post("/tree/direct", json=_PAYLOAD)
    assert r.status_code == 200
    body = r.json()
    assert body["order"] == ["R", "A", "B"]
    assert body["parents"] == {"A": "R", "B": "R"}
    assert body["children"] == {"R": ["A", "B"]}
    assert body["excluded"] == ["M"]

    assert client.post("/tree/direct", json={**_PAYLOAD, "root_id": "NOPE"}).status_code == 404


def test_get_layout_without_dataset_is_unavailable(monkeypatch) -> None:
    monkeypatch.delenv("FAMILYTREE_DATA", raising=False)
    with pytest.raises(HTTPException) as exc_info:
        layout_routes.get_layout(mode="compact", focus=None, root=None)
    assert exc_info.value.status_code == 503


def test_get_layout_reads_dataset_file(client, monkeypatch, tmp_path) -> None:
    path = tmp_path / "tree.json"
    path.write_text(json.dumps(_PAYLOAD), encoding="utf-8")
    monkeypatch.setenv("FAMILYTREE_DATA", str(path))
    monkeypatch.setenv("FAMILYTREE_ROOT_ID", "R")
    layout_routes._load_dataset.cache_clear()

    r = client.get("/layout", params={"mode": "compact"})
    assert r.status_code == 200
    assert {n["id"] for n in r.json()["nodes"]} == {"R", "A", "B"}

    r = client.get("/layout", params={"mode": "focus", "focus": "B"})
    assert r.status_code == 200
    assert r.json()["focusId"] == "B"

    layout_routes._load_dataset.cache_clear()
