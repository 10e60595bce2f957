"""Tests API / API tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from fuel_finder.api.deps import get_location_resolver
from fuel_finder.database import get_db
from fuel_finder.main import app
from fuel_finder.services.location_resolver import LocationResolver

SYDNEY = (-33.8688, 151.2093)


@pytest.fixture
async def client(sessionmaker, add_station, add_coordinate):
    await add_coordinate("2000", *SYDNEY, "Sydney")
    await add_station("S1", *SYDNEY, brand="Coles Express", name="Sydney Central",
                      prices={"U91": 199.9, "E10": 189.9}, suburb="Sydney", postcode="2000")
    await add_station("S2", -33.8790, 151.1990, brand="Ampol", name="Ultimo", prices={"U91": 185.0})

    async def override_get_db():
        async with sessionmaker() as session:
            yield session

    resolver = LocationResolver()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_location_resolver] = lambda: resolver

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_root(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "running"


@pytest.mark.asyncio
async def test_api_health(client):
    resp = await client.get("/api/")
    assert resp.status_code == 200
    assert resp.json()["app"] == "NSW Fuel Finder"


@pytest.mark.asyncio
async def test_nearby_requires_location(client):
    resp = await client.get("/api/stations/nearby")
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_nearby_requires_both_coordinates(client):
    resp = await client.get("/api/stations/nearby", params={"latitude": SYDNEY[0]})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_nearby_rejects_out_of_range_latitude(client):
    resp = await client.get("/api/stations/nearby", params={"latitude": 95, "longitude": 151})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_nearby_by_coordinates(client):
    resp = await client.get("/api/stations/nearby", params={
        "latitude": SYDNEY[0], "longitude": SYDNEY[1], "radiusKm": 500, "sortBy": "price",
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["radius_km"] == 50
    assert data["count"] == 2
    assert [s["id"] for s in data["stations"]] == ["S2", "S1"]
    assert data["available_brands"] == ["Ampol", "Shell"]
    assert data["stations"][1]["brand"] == "Shell (Coles Express)"


@pytest.mark.asyncio
async def test_nearby_brand_and_fuel_filters(client):
    resp = await client.get("/api/stations/nearby", params=[
        ("latitude", SYDNEY[0]), ("longitude", SYDNEY[1]),
        ("brands", "Shell"), ("fuelType", "E10"), ("volumeLitres", 40),
    ])
    data = resp.json()
    assert [s["id"] for s in data["stations"]] == ["S1"]
    price = data["stations"][0]["prices"][0]
    assert price["fuel_type"] == "E10"
    assert float(price["estimated_cost"]) == 75.96


@pytest.mark.asyncio
async def test_nearby_by_suburb(client):
    resp = await client.get("/api/stations/nearby", params={"suburb": "Sydney", "radiusKm": 0})
    data = resp.json()
    assert resp.status_code == 200
    assert data["radius_km"] == 1
    assert data["latitude"] == pytest.approx(SYDNEY[0])
    assert [s["id"] for s in data["stations"]] == ["S1"]


@pytest.mark.asyncio
async def test_nearby_unknown_suburb(client):
    resp = await client.get("/api/stations/nearby", params={"suburb": "Atlantis"})
    data = resp.json()
    assert resp.status_code == 200
    assert data["count"] == 0
    assert "Atlantis" in data["message"]


@pytest.mark.asyncio
async def test_cheapest(client):
    resp = await client.get("/api/prices/cheapest", params={"fuelTypes": ["U91", "E10"]})
    assert resp.status_code == 200
    data = resp.json()
    assert [c["fuel_type"] for c in data] == ["E10", "U91"]
    assert data[1]["station"]["station_code"] == "S2"


@pytest.mark.asyncio
async def test_trends(client):
    resp = await client.get("/api/stations/S1/trends", params={"periodDays": 1000})
    assert resp.status_code == 200
    assert [t["fuel_type"] for t in resp.json()] == ["E10", "U91"]


@pytest.mark.asyncio
async def test_resolve_location(client):
    resp = await client.get("/api/locations/resolve", params={"query": "2000"})
    assert resp.status_code == 200
    assert resp.json()["label"] == "Sydney"

    resp = await client.get("/api/locations/resolve", params={"query": "Atlantis"})
    assert resp.status_code == 404
