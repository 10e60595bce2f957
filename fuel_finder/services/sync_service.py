"""
Synchronisation du jeu de données / Dataset synchronisation.

Remplace toutes les stations et tous les prix en une transaction, et ajoute
un instantané d'historique partageant un horodatage unique.
Replaces every station and price in one transaction and appends a history
snapshot sharing a single timestamp.
"""

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from fuel_finder.config import Settings
from fuel_finder.models.price import FuelPrice
from fuel_finder.models.price_history import FuelPriceHistory
from fuel_finder.models.station import FuelStation
from fuel_finder.schemas.feed import FuelFeedResponse, FuelPricePayload, FuelStationPayload
from fuel_finder.services.address_normalizer import AddressNormalizer
from fuel_finder.services.brand_normalizer import canonical_brand
from fuel_finder.services.clock import utc_now
from fuel_finder.services.date_parsing import parse_feed_timestamp
from fuel_finder.services.sync_lock import SyncLock

log = logging.getLogger(__name__)


class FeedClient(Protocol):
    async def get_all_prices(self) -> FuelFeedResponse: ...


class SyncStatus(str, enum.Enum):
    COMPLETED = "COMPLETED"
    SKIPPED_CONCURRENT = "SKIPPED_CONCURRENT"


@dataclass(frozen=True)
class SyncStats:
    stations: int = 0
    prices: int = 0
    history_rows: int = 0
    dropped_stations: int = 0
    dropped_prices: int = 0
    sync_timestamp: datetime | None = None


@dataclass(frozen=True)
class SyncResult:
    status: SyncStatus
    stats: SyncStats | None = None

    @property
    def completed(self) -> bool:
        return self.status == SyncStatus.COMPLETED


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def map_station(payload: FuelStationPayload, normalizer: AddressNormalizer, synced_at: datetime) -> dict:
    """Payload station -> ligne fuel_stations / Station payload -> fuel_stations row."""
    location = payload.location
    parts = normalizer.resolve(payload.suburb, payload.state, payload.postcode, payload.address)
    return {
        "station_code": payload.code.strip(),
        "station_id": payload.station_id,
        "brand_id": payload.brand_id,
        "brand": payload.brand,
        "brand_canonical": canonical_brand(payload.brand),
        "name": payload.name,
        "address": payload.address,
        "suburb": parts.suburb,
        "state": parts.state,
        "postcode": parts.postcode,
        "latitude": location.latitude if location and location.latitude is not None else 0.0,
        "longitude": location.longitude if location and location.longitude is not None else 0.0,
        "is_adblue_available": bool(payload.is_adblue_available),
        "synced_at": synced_at,
    }


def map_price(payload: FuelPricePayload) -> dict:
    """Payload prix -> ligne fuel_prices / Price payload -> fuel_prices row."""
    return {
        "station_code": payload.station_code.strip(),
        "fuel_type": payload.fuel_type.strip().upper(),
        "price": payload.price,
        "unit": payload.price_unit,
        "description": payload.description,
        "last_updated": parse_feed_timestamp(payload.price_updated_raw or payload.last_updated_raw),
    }


class SyncService:
    """Exécute une synchronisation complète / Runs one full synchronisation."""

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        feed_client: FeedClient,
        lock_factory: Callable[[], SyncLock],
        normalizer: AddressNormalizer | None = None,
        now_fn=utc_now,
    ):
        self.sessionmaker = sessionmaker
        self.feed_client = feed_client
        self.lock_factory = lock_factory
        self.normalizer = normalizer or AddressNormalizer()
        self._now_fn = now_fn

    async def last_sync_checkpoint(self) -> datetime | None:
        """Max(synced_at) des stations, lu à chaque décision / Max station synced_at, read fresh on every decision."""
        async with self.sessionmaker() as session:
            result = await session.execute(select(func.max(FuelStation.synced_at)))
            return result.scalar()

    def build_rows(self, feed: FuelFeedResponse, sync_timestamp: datetime) -> tuple[list[dict], list[dict], SyncStats]:
        stations: dict[str, dict] = {}
        dropped_stations = 0
        for payload in feed.stations:
            if _blank(payload.code):
                dropped_stations += 1
                continue
            row = map_station(payload, self.normalizer, sync_timestamp)
            # Doublon de code : le dernier gagne / Duplicate code: last one wins
            stations[row["station_code"]] = row

        prices: dict[tuple[str, str], dict] = {}
        dropped_prices = 0
        for payload in feed.prices:
            if _blank(payload.station_code) or _blank(payload.fuel_type) or payload.price is None:
                dropped_prices += 1
                continue
            row = map_price(payload)
            if row["station_code"] not in stations:
                dropped_prices += 1
                continue
            prices[(row["station_code"], row["fuel_type"])] = row

        stats = SyncStats(
            stations=len(stations),
            prices=len(prices),
            history_rows=len(prices),
            dropped_stations=dropped_stations,
            dropped_prices=dropped_prices,
            sync_timestamp=sync_timestamp,
        )
        return list(stations.values()), list(prices.values()), stats

    async def synchronize(self) -> SyncResult:
        """
        Récupère le flux puis remplace le jeu de données sous verrou.
        Fetches the feed, then swaps the dataset under the lock.

        Les erreurs du flux remontent avant toute écriture.
        Feed errors propagate before anything is written.
        """
        feed = await self.feed_client.get_all_prices()
        log.info(
            "Fetched NSW fuel feed: %d stations, %d prices",
            len(feed.stations),
            len(feed.prices),
        )

        lock = self.lock_factory()
        async with lock.hold() as acquired:
            if not acquired:
                log.info("Fuel data synchronisation skipped; another instance holds the sync lock.")
                return SyncResult(SyncStatus.SKIPPED_CONCURRENT)

            async with self.sessionmaker() as session:
                async with session.begin():
                    stats = await self._replace_dataset(session, feed)

        log.info(
            "Fuel data synchronisation completed at %s: %d stations, %d prices, %d history rows "
            "(%d stations and %d prices dropped).",
            stats.sync_timestamp.isoformat(),
            stats.stations,
            stats.prices,
            stats.history_rows,
            stats.dropped_stations,
            stats.dropped_prices,
        )
        return SyncResult(SyncStatus.COMPLETED, stats)

    async def _replace_dataset(self, session: AsyncSession, feed: FuelFeedResponse) -> SyncStats:
        sync_timestamp = self._now_fn()
        station_rows, price_rows, stats = self.build_rows(feed, sync_timestamp)
        if not station_rows:
            log.warning("NSW fuel feed returned no usable stations; the store will be emptied.")

        await session.execute(delete(FuelPrice))
        await session.execute(delete(FuelStation))

        if station_rows:
            await session.execute(insert(FuelStation), station_rows)
        if price_rows:
            await session.execute(insert(FuelPrice), price_rows)
            history_rows = [
                {
                    "station_code": row["station_code"],
                    "fuel_type": row["fuel_type"],
                    "price": row["price"],
                    "recorded_at": sync_timestamp,
                }
                for row in price_rows
            ]
            await session.execute(insert(FuelPriceHistory), history_rows)

        log.info("Persisted %d price history rows for sync at %s.", stats.history_rows, sync_timestamp.isoformat())
        return stats


def build_sync_service(
    feed_client: FeedClient,
    engine: AsyncEngine,
    sessionmaker: async_sessionmaker[AsyncSession],
    config: Settings,
) -> SyncService:
    """Assemble le service depuis la configuration / Wire the service from settings."""
    return SyncService(
        sessionmaker=sessionmaker,
        feed_client=feed_client,
        lock_factory=lambda: SyncLock(
            engine,
            key=config.SYNC_LOCK_KEY,
            lease_seconds=config.SYNC_LOCK_LEASE_SECONDS,
        ),
    )
