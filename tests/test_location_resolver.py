"""Tests résolution de localisation / Location resolver tests."""

import pytest

from fuel_finder.services.location_resolver import LocationResolver, is_postcode


class FakeClock:
    def __init__(self):
        self.value = 1000.0

    def __call__(self):
        return self.value


@pytest.fixture
async def seeded(add_station, add_coordinate):
    await add_coordinate("2032", -33.9230, 151.2270, "Kingsford")
    await add_coordinate("2033", -33.9100, 151.2200, "Kensington")
    await add_station("S1", -33.92, 151.23, suburb="Kingsford", postcode="2032")
    await add_station("S2", -33.91, 151.22, suburb="North Kingsford", postcode="2033")
    await add_station("S3", -33.91, 151.22, suburb="Kingsford Heights", postcode="9998")


def test_is_postcode():
    assert is_postcode("2032")
    assert not is_postcode("203")
    assert not is_postcode("20321")
    assert not is_postcode("20a2")


@pytest.mark.asyncio
async def test_resolve_postcode(db, seeded):
    result = await LocationResolver().resolve(db, " 2032 ")
    assert result is not None
    assert result.latitude == pytest.approx(-33.9230)
    assert result.label == "Kingsford"


@pytest.mark.asyncio
async def test_unknown_postcode(db, seeded):
    assert await LocationResolver().resolve(db, "9999") is None


@pytest.mark.asyncio
async def test_suburb_exact_match_preferred(db, seeded):
    result = await LocationResolver().resolve(db, "kingsford")
    assert result.postcode == "2032"


@pytest.mark.asyncio
async def test_suburb_partial_match(db, seeded):
    # "North Kingsford" seul a un postcode résolu / only "North Kingsford" has a resolvable postcode
    result = await LocationResolver().resolve(db, "north king")
    assert result.postcode == "2033"


@pytest.mark.asyncio
async def test_suburb_without_resolvable_postcode(db, seeded):
    assert await LocationResolver().resolve(db, "Kingsford Heights") is None


@pytest.mark.asyncio
async def test_unknown_and_blank_inputs(db, seeded):
    resolver = LocationResolver()
    assert await resolver.resolve(db, "Atlantis") is None
    assert await resolver.resolve(db, "") is None
    assert await resolver.resolve(db, None) is None
    # Les jokers LIKE sont échappés / LIKE wildcards are escaped
    assert await resolver.resolve(db, "%") is None


@pytest.mark.asyncio
async def test_coordinate_cache_ttl(db, seeded, add_coordinate):
    clock = FakeClock()
    resolver = LocationResolver(ttl_seconds=60, clock=clock)
    assert await resolver.resolve(db, "2000") is None

    await add_coordinate("2000", -33.8688, 151.2093, "Sydney")
    # Encore en cache / Still cached
    assert await resolver.resolve(db, "2000") is None

    clock.value += 61
    result = await resolver.resolve(db, "2000")
    assert result is not None and result.label == "Sydney"


@pytest.mark.asyncio
async def test_invalidate_reloads(db, seeded, add_coordinate):
    resolver = LocationResolver()
    assert await resolver.resolve(db, "2000") is None
    await add_coordinate("2000", -33.8688, 151.2093)
    resolver.invalidate()
    assert await resolver.resolve(db, "2000") is not None
