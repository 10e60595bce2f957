"""Tests tendances de prix / Price trend tests."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from fuel_finder.models.price_history import FuelPriceHistory
from fuel_finder.services.trend_service import TrendService, clamp_period

NOW = datetime(2025, 6, 30, tzinfo=timezone.utc)
WINDOW_START = NOW - timedelta(days=7)


@pytest.fixture
def service():
    return TrendService(now_fn=lambda: NOW)


@pytest.fixture
def add_history(db):
    async def _add(station_code, fuel_type, price, recorded_at):
        db.add(FuelPriceHistory(
            station_code=station_code,
            fuel_type=fuel_type,
            price=Decimal(str(price)),
            recorded_at=recorded_at,
        ))
        await db.commit()

    return _add


def test_clamp_period():
    assert clamp_period(None) == 30
    assert clamp_period(0) == 1
    assert clamp_period(1000) == 365
    assert clamp_period(7) == 7


@pytest.mark.asyncio
async def test_backfill_from_history_before_window(db, service, add_history):
    await add_history("S1", "U91", 180.0, WINDOW_START - timedelta(days=30))

    trends = await service.get_trends(db, "S1", period_days=7)

    assert len(trends) == 1
    assert trends[0].fuel_type == "U91"
    assert len(trends[0].points) == 1
    assert trends[0].points[0].recorded_at == WINDOW_START
    assert trends[0].points[0].price == Decimal("180.0")


@pytest.mark.asyncio
async def test_backfill_uses_most_recent_earlier_row(db, service, add_history):
    await add_history("S1", "U91", 170.0, WINDOW_START - timedelta(days=30))
    await add_history("S1", "U91", 175.0, WINDOW_START - timedelta(days=2))

    trends = await service.get_trends(db, "S1", period_days=7)
    assert trends[0].points[0].price == Decimal("175.0")


@pytest.mark.asyncio
async def test_in_window_history_is_sorted(db, service, add_history):
    await add_history("S1", "E10", 185.0, NOW - timedelta(days=1))
    await add_history("S1", "E10", 183.0, NOW - timedelta(days=3))
    await add_history("S1", "E10", 150.0, WINDOW_START - timedelta(days=1))

    trends = await service.get_trends(db, "S1", period_days=7)

    points = trends[0].points
    assert [p.price for p in points] == [Decimal("183.0"), Decimal("185.0")]
    assert points[0].recorded_at < points[1].recorded_at


@pytest.mark.asyncio
async def test_live_price_fallback(db, service, add_station):
    await add_station("S1", -33.87, 151.21, prices={
        "P98": (210.0, NOW - timedelta(days=60)),
        "E10": (189.0, NOW - timedelta(days=2)),
    })

    trends = await service.get_trends(db, "S1", period_days=7)

    by_fuel = {t.fuel_type: t.points for t in trends}
    assert [t.fuel_type for t in trends] == ["E10", "P98"]
    assert by_fuel["P98"][0].recorded_at == WINDOW_START
    assert by_fuel["E10"][0].recorded_at == NOW - timedelta(days=2)


@pytest.mark.asyncio
async def test_fuel_filter_and_union(db, service, add_station, add_history):
    await add_station("S1", -33.87, 151.21, prices={"U91": (199.0, NOW - timedelta(hours=5))})
    await add_history("S1", "E10", 185.0, NOW - timedelta(days=1))

    trends = await service.get_trends(db, "S1", period_days=7)
    assert [t.fuel_type for t in trends] == ["E10", "U91"]

    trends = await service.get_trends(db, "S1", fuel_type="e10", period_days=7)
    assert [t.fuel_type for t in trends] == ["E10"]


@pytest.mark.asyncio
async def test_requested_fuel_without_data_is_omitted(db, service, add_history):
    await add_history("S1", "E10", 185.0, NOW - timedelta(days=1))
    assert await service.get_trends(db, "S1", fuel_type="DL", period_days=7) == []


@pytest.mark.asyncio
async def test_unknown_station(db, service):
    assert await service.get_trends(db, "NOPE", period_days=30) == []
    assert await service.get_trends(db, "  ", period_days=30) == []
