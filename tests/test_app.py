import pytest
import yaml
from fastapi.testclient import TestClient

from realty_api.config_loader import Config
from realty_api.main import create_app


@pytest.fixture
def settings(tmp_path, monkeypatch):
    monkeypatch.delenv("RESPONSE_CACHE_ENABLED", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "app": {
                    "cache": {
                        "default_ttl_seconds": 45,
                        "ttl_by_prefix": {
                            "/api/properties": 120,
                            "/api/properties/featured": 300,
                        },
                    }
                }
            }
        ),
        encoding="utf-8",
    )
    return Config(path)


def test_listing_routes_are_cached_per_prefix(settings, clock):
    client = TestClient(create_app(settings, clock=clock))

    first = client.get("/api/properties/featured")
    second = client.get("/api/properties/featured")
    team = client.get("/api/team")

    assert first.headers["x-cache"] == "MISS"
    assert first.headers["cache-control"] == "public, max-age=300"
    assert second.headers["x-cache"] == "HIT"
    assert second.json() == first.json()
    assert all(listing["featured"] for listing in second.json())
    assert team.headers["cache-control"] == "public, max-age=45"


def test_created_property_is_not_cached(settings, clock):
    app = create_app(settings, clock=clock)
    client = TestClient(app)

    created = client.post(
        "/api/properties",
        json={"title": "Loft", "price": 250000, "city": "Larnaca", "bedrooms": 1},
    )

    assert created.status_code == 201
    assert "x-cache" not in created.headers
    assert app.state.response_cache.size() == 0
    fetched = client.get(f"/api/properties/{created.json()['id']}")
    assert fetched.json()["title"] == "Loft"


def test_missing_property_is_not_cached(settings, clock):
    app = create_app(settings, clock=clock)
    client = TestClient(app)

    first = client.get("/api/properties/999")
    second = client.get("/api/properties/999")

    assert first.status_code == second.status_code == 404
    assert second.headers["x-cache"] == "MISS"
    assert app.state.response_cache.size() == 0


def test_filters_are_cached_separately(settings, clock):
    client = TestClient(create_app(settings, clock=clock))

    limassol = client.get("/api/properties", params={"city": "Limassol"})
    rentals = client.get("/api/properties", params={"status": "for_rent"})

    assert {listing["city"] for listing in limassol.json()} == {"Limassol"}
    assert [listing["status"] for listing in rentals.json()] == ["for_rent"]
    assert rentals.headers["x-cache"] == "MISS"


def test_cache_can_be_disabled_by_environment(settings, clock, monkeypatch):
    monkeypatch.setenv("RESPONSE_CACHE_ENABLED", "false")
    client = TestClient(create_app(settings, clock=clock))

    client.get("/api/blog")
    response = client.get("/api/blog")

    assert "x-cache" not in response.headers


def test_lifespan_runs_janitor(settings, clock):
    app = create_app(settings, clock=clock)

    with TestClient(app) as client:
        assert app.state.cache_janitor.running
        assert client.get("/health").json()["status"] == "ok"

    assert not app.state.cache_janitor.running
