"""Fixtures partagées / Shared test fixtures."""

import os
import tempfile
from datetime import datetime, timezone
from decimal import Decimal

# Avant tout import du package / Before any package import
_TMP_DIR = tempfile.mkdtemp(prefix="fuel_finder_tests_")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TMP_DIR}/app.db")
os.environ.setdefault("SYNC_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest

from fuel_finder.database import build_engine, build_sessionmaker, init_db
from fuel_finder.models.price import FuelPrice
from fuel_finder.models.representative_coordinate import RepresentativeCoordinate
from fuel_finder.models.station import FuelStation

SYNCED_AT = datetime(2025, 6, 1, 2, 0, tzinfo=timezone.utc)


@pytest.fixture
async def engine(tmp_path):
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def sessionmaker(engine):
    return build_sessionmaker(engine)


@pytest.fixture
async def db(sessionmaker):
    async with sessionmaker() as session:
        yield session


@pytest.fixture
def add_station(db):
    """Ajoute une station et ses prix / Add a station with its prices.

    prices: {fuel_type: price} ou {fuel_type: (price, last_updated)}
    """

    async def _add(code, latitude, longitude, brand=None, name=None, prices=None,
                   suburb=None, postcode=None, synced_at=SYNCED_AT):
        station = FuelStation(
            station_code=code,
            brand=brand,
            name=name,
            suburb=suburb,
            state="NSW",
            postcode=postcode,
            latitude=latitude,
            longitude=longitude,
            synced_at=synced_at,
        )
        for fuel, value in (prices or {}).items():
            price, updated = value if isinstance(value, tuple) else (value, None)
            station.prices.append(FuelPrice(
                fuel_type=fuel,
                price=Decimal(str(price)),
                unit="c/L",
                last_updated=updated,
            ))
        db.add(station)
        await db.commit()
        return station

    return _add


@pytest.fixture
def add_coordinate(db):
    async def _add(postcode, latitude, longitude, label=None):
        db.add(RepresentativeCoordinate(postcode=postcode, latitude=latitude, longitude=longitude, label=label))
        await db.commit()

    return _add
