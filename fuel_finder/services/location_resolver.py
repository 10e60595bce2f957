"""
Résolution suburb/postcode -> coordonnée / Suburb or postcode -> coordinate resolution.
La table des coordonnées représentatives est gardée en mémoire avec un TTL.
"""

import asyncio
import logging
import time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fuel_finder.models.representative_coordinate import RepresentativeCoordinate
from fuel_finder.models.station import FuelStation
from fuel_finder.schemas.location import RepresentativeCoordinateResult

log = logging.getLogger(__name__)


def is_postcode(value: str) -> bool:
    return len(value) == 4 and value.isdigit()


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class _CoordinateCache:
    """Cache TTL de la carte postcode -> coordonnée / TTL cache of the postcode -> coordinate map."""

    def __init__(self, ttl_seconds: float, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._value: dict[str, RepresentativeCoordinateResult] | None = None
        self._expires_at = 0.0

    def get(self) -> dict[str, RepresentativeCoordinateResult] | None:
        if self._value is not None and self._clock() < self._expires_at:
            return self._value
        return None

    def set(self, value: dict[str, RepresentativeCoordinateResult]) -> None:
        self._value = value
        self._expires_at = self._clock() + self.ttl_seconds

    def clear(self) -> None:
        self._value = None
        self._expires_at = 0.0


class LocationResolver:
    """Résout une saisie utilisateur en coordonnée représentative / Resolves user input to a representative coordinate.

    Partagé entre requêtes pour conserver le cache / Shared across requests so the cache survives.
    """

    def __init__(self, ttl_seconds: float = 30 * 60, clock=time.monotonic):
        self._cache = _CoordinateCache(ttl_seconds, clock)
        self._load_lock = asyncio.Lock()

    def invalidate(self) -> None:
        self._cache.clear()

    async def resolve(self, db: AsyncSession, value: str | None) -> RepresentativeCoordinateResult | None:
        trimmed = (value or "").strip()
        if not trimmed:
            return None
        if is_postcode(trimmed):
            coordinates = await self._coordinate_map(db)
            return coordinates.get(trimmed)
        return await self._resolve_suburb(db, trimmed)

    async def _resolve_suburb(self, db: AsyncSession, suburb: str) -> RepresentativeCoordinateResult | None:
        coordinates = await self._coordinate_map(db)
        if not coordinates:
            return None

        result = await db.execute(
            select(FuelStation.suburb, FuelStation.postcode)
            .where(FuelStation.suburb.is_not(None))
            .where(FuelStation.suburb.ilike(_like_pattern(suburb), escape="\\"))
            .where(FuelStation.postcode.is_not(None))
            .distinct()
            .order_by(FuelStation.suburb, FuelStation.postcode)
        )
        candidates = [
            (row.suburb.strip(), row.postcode.strip())
            for row in result
            if row.postcode and row.postcode.strip()
        ]
        if not candidates:
            return None

        # Correspondance exacte d'abord / Exact matches first
        wanted = suburb.lower()
        exact = [c for c in candidates if c[0].lower() == wanted]
        partial = [c for c in candidates if c[0].lower() != wanted]
        for _, postcode in exact + partial:
            match = coordinates.get(postcode)
            if match is not None:
                return match

        log.info("Suburb '%s' matched %d stations but no postcode resolved", suburb, len(candidates))
        return None

    async def _coordinate_map(self, db: AsyncSession) -> dict[str, RepresentativeCoordinateResult]:
        cached = self._cache.get()
        if cached is not None:
            return cached

        async with self._load_lock:
            cached = self._cache.get()
            if cached is not None:
                return cached

            result = await db.execute(select(RepresentativeCoordinate))
            mapping: dict[str, RepresentativeCoordinateResult] = {}
            for item in result.scalars():
                if item.postcode and item.postcode.strip():
                    postcode = item.postcode.strip()
                    mapping[postcode] = RepresentativeCoordinateResult(
                        postcode=postcode,
                        latitude=item.latitude,
                        longitude=item.longitude,
                        label=item.label,
                    )
            self._cache.set(mapping)
            log.info("Loaded %d representative coordinates", len(mapping))
            return mapping
