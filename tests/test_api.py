from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from paint_matching import api
from paint_matching.service import PaintMatchingService


@pytest.fixture
def client(monkeypatch):
    service = PaintMatchingService.from_path()
    monkeypatch.setattr(api, "_build_service", lambda: service)
    return TestClient(api.app)


def test_brands_endpoint_lists_catalog_brands(client):
    response = client.get("/brands")

    assert response.status_code == 200
    assert response.json() == {"brands": ["Army Painter", "Citadel", "Vallejo"]}


def test_matches_endpoint_returns_ranked_paints(client):
    response = client.post(
        "/matches",
        json={"paint_id": "citadel-base-mephiston-red", "brands": ["Vallejo"], "limit": 2},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["source_hex"] == "#9A1115"
    assert payload["algorithm"] == "ciede2000"
    assert len(payload["matches"]) == 2
    first = payload["matches"][0]
    assert first["paint"]["brand"] == "Vallejo"
    assert first["distance"] <= payload["matches"][1]["distance"]
    assert 0.0 <= first["confidence"] <= 1.0
    assert first["quality"] in {"excellent", "good", "fair", "poor"}
    assert first["quality_description"]


def test_matches_endpoint_accepts_custom_hex_and_algorithm(client):
    response = client.post("/matches", json={"hex": "#FFFFFF", "algorithm": "euclidean", "limit": 1})

    assert response.status_code == 200
    payload = response.json()
    assert payload["algorithm"] == "euclidean"
    assert payload["matches"][0]["paint"]["stable_id"] == "citadel-layer-white-scar"
    assert payload["matches"][0]["quality"] == "excellent"


def test_recipes_endpoint_returns_components(client):
    response = client.post(
        "/recipes",
        json={"hex": "#D96A6A", "max_components": 2, "max_results": 3},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["target_hex"] == "#D96A6A"
    assert 0 < len(payload["recipes"]) <= 3
    for recipe in payload["recipes"]:
        assert len(recipe["components"]) == 2
        assert sum(c["percentage"] for c in recipe["components"]) == pytest.approx(100.0)
        assert recipe["resulting_hex"].startswith("#")


def test_bad_hex_is_a_client_error(client):
    response = client.post("/matches", json={"hex": "not-a-color"})

    assert response.status_code == 400
    assert response.json()["detail"].startswith("invalid_source:")


def test_unknown_paint_id_is_a_client_error(client):
    response = client.post("/recipes", json={"paint_id": "no-such-paint"})

    assert response.status_code == 400


def test_missing_source_is_a_client_error(client):
    response = client.post("/matches", json={})

    assert response.status_code == 400


@pytest.mark.parametrize(
    ("path", "body"),
    [
        ("/matches", {"hex": "#FFFFFF", "limit": 0}),
        ("/recipes", {"hex": "#FFFFFF", "max_components": 5}),
        ("/recipes", {"hex": "#FFFFFF", "min_percentage": 0}),
        ("/matches", {"hex": "#FFFFFF", "algorithm": "cie94"}),
    ],
)
def test_out_of_range_parameters_are_rejected(client, path, body):
    response = client.post(path, json=body)

    assert response.status_code == 422


def test_service_is_built_off_the_event_loop(monkeypatch):
    service = PaintMatchingService.from_path()

    def build_service():
        # Raises when called on the thread running the event loop.
        with pytest.raises(RuntimeError):
            asyncio.get_running_loop()
        return service

    monkeypatch.setattr(api, "_build_service", build_service)
    client = TestClient(api.app)

    assert client.get("/brands").status_code == 200
    assert client.post("/matches", json={"hex": "#FFFFFF", "limit": 1}).status_code == 200
