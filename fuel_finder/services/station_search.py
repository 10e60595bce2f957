"""
Recherche de stations à proximité / Nearby station search.
Pré-filtre par boîte englobante, distance Haversine exacte, filtres carburant/marque, tri.
Bounding-box pre-filter, exact haversine distance, fuel/brand filters, sorting.
"""

import logging
from decimal import ROUND_HALF_EVEN, Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from fuel_finder.models.price import FuelPrice
from fuel_finder.models.station import FuelStation
from fuel_finder.schemas.station import (
    CheapestPrice,
    NearbyFuelStation,
    NearbyStationsResult,
    StationFuelPrice,
    StationSummary,
)
from fuel_finder.services.brand_normalizer import canonical_brand, display_brand, normalize_brand_filters
from fuel_finder.services.location_resolver import LocationResolver
from fuel_finder.utils.geo import bounding_box, haversine, is_valid_coordinate

log = logging.getLogger(__name__)

DEFAULT_ALLOWED_FUEL_TYPES = ("E10", "U91", "P95", "P98", "DL", "PDL")
SORT_DISTANCE = "distance"
SORT_PRICE = "price"
CENT = Decimal("0.01")


class InvalidReferencePoint(ValueError):
    """Coordonnées de référence hors bornes / Reference coordinates out of range."""


def normalize_fuel_types(fuel_types: list[str] | None) -> list[str]:
    """Trim + majuscules, distincts et triés / Trimmed, upper-cased, distinct and sorted."""
    if not fuel_types:
        return []
    return sorted({f.strip().upper() for f in fuel_types if f and f.strip()})


def estimate_cost(cents_per_litre: Decimal, volume_litres: float | None) -> Decimal | None:
    """Coût total en dollars / Total cost in dollars: price x volume / 100."""
    if volume_litres is None or volume_litres <= 0:
        return None
    total = Decimal(cents_per_litre) * Decimal(str(volume_litres)) / Decimal(100)
    return total.quantize(CENT, rounding=ROUND_HALF_EVEN)


def sort_stations(
    stations: list[NearbyFuelStation],
    sort_by: str | None,
    sort_order: str | None,
) -> list[NearbyFuelStation]:
    """
    Tri par distance ou prix le plus bas ; valeurs absentes toujours en fin,
    égalités départagées par nom croissant.
    Sort by distance or cheapest price; missing values always last,
    ties broken by name ascending.
    """
    descending = (sort_order or "").strip().lower() == "desc"
    if (sort_by or "").strip().lower() == SORT_PRICE:
        key = NearbyFuelStation.cheapest_price
    else:
        key = lambda s: s.distance_km  # noqa: E731

    by_name = sorted(stations, key=lambda s: (s.name or "").lower())
    present = [s for s in by_name if key(s) is not None]
    missing = [s for s in by_name if key(s) is None]
    present.sort(key=key, reverse=descending)
    return present + missing


class StationSearchService:
    """Service de recherche / Search service."""

    def __init__(
        self,
        resolver: LocationResolver,
        allowed_fuel_types: list[str] | tuple[str, ...] = DEFAULT_ALLOWED_FUEL_TYPES,
    ):
        self.resolver = resolver
        self.allowed_fuel_types = frozenset(normalize_fuel_types(list(allowed_fuel_types)))

    def _requested_fuels(self, fuel_types: list[str] | None) -> frozenset[str] | None:
        """None = tous les carburants autorisés / None means every allowed fuel."""
        requested = normalize_fuel_types(fuel_types)
        if not requested:
            return None
        return frozenset(f for f in requested if f in self.allowed_fuel_types)

    def _map_prices(
        self,
        station: FuelStation,
        requested: frozenset[str] | None,
        volume_litres: float | None,
    ) -> list[StationFuelPrice]:
        prices = []
        for price in station.prices:
            fuel = (price.fuel_type or "").strip().upper()
            if fuel not in self.allowed_fuel_types:
                continue
            if requested is not None and fuel not in requested:
                continue
            prices.append(StationFuelPrice(
                fuel_type=fuel,
                cents_per_litre=price.price,
                unit=price.unit,
                description=price.description,
                last_updated=price.last_updated,
                estimated_cost=estimate_cost(price.price, volume_litres),
            ))
        prices.sort(key=lambda p: p.fuel_type)
        return prices

    async def search(
        self,
        db: AsyncSession,
        latitude: float | None = None,
        longitude: float | None = None,
        radius_km: float = 5.0,
        suburb: str | None = None,
        fuel_types: list[str] | None = None,
        brands: list[str] | None = None,
        volume_litres: float | None = None,
        sort_by: str | None = SORT_DISTANCE,
        sort_order: str | None = "asc",
    ) -> NearbyStationsResult:
        radius = max(radius_km, 0.0)
        has_reference = latitude is not None and longitude is not None

        if has_reference:
            if not is_valid_coordinate(latitude, longitude):
                raise InvalidReferencePoint(f"Invalid reference point ({latitude}, {longitude})")
        elif suburb and suburb.strip():
            location = await self.resolver.resolve(db, suburb)
            if location is None:
                log.info("Location '%s' could not be resolved", suburb.strip())
                return NearbyStationsResult(
                    message=f"No stations found for '{suburb.strip()}'. Try a nearby suburb or postcode.",
                    location_found=False,
                )
            latitude, longitude = location.latitude, location.longitude
            has_reference = True
            log.info(
                "Resolved '%s' to postcode %s (%s, %s)",
                suburb.strip(), location.postcode, latitude, longitude,
            )

        query = select(FuelStation).options(selectinload(FuelStation.prices))
        if has_reference:
            lat_min, lat_max, lon_min, lon_max = bounding_box(latitude, longitude, radius)
            query = query.where(
                FuelStation.latitude.between(lat_min, lat_max),
                FuelStation.longitude.between(lon_min, lon_max),
            )
        candidates = list((await db.execute(query)).scalars().all())

        # Marques disponibles avant filtre de marque / Available brands before the brand filter
        available = {}
        for station in candidates:
            canonical = canonical_brand(station.brand)
            if canonical:
                available.setdefault(canonical.lower(), canonical)
        available_brands = sorted(available.values(), key=str.lower)

        if not candidates:
            log.warning("No fuel station data available in the local store. Ensure the sync service has run successfully.")
            return NearbyStationsResult(
                available_brands=available_brands,
                reference_latitude=latitude,
                reference_longitude=longitude,
            )

        requested = self._requested_fuels(fuel_types)
        brand_filter = {b.lower() for b in normalize_brand_filters(brands)}
        if brand_filter:
            log.info("Filtering stations by brands [%s]", ", ".join(sorted(brand_filter)))

        results: list[NearbyFuelStation] = []
        for station in candidates:
            distance = None
            if has_reference:
                if not is_valid_coordinate(station.latitude, station.longitude):
                    continue
                distance = haversine(latitude, longitude, station.latitude, station.longitude)
                if distance > radius:
                    continue

            canonical = canonical_brand(station.brand)
            if brand_filter and (canonical is None or canonical.lower() not in brand_filter):
                continue

            prices = self._map_prices(station, requested, volume_litres)
            if not prices:
                continue

            results.append(NearbyFuelStation(
                id=station.station_code,
                name=station.name or f"Site {station.station_code}",
                brand=display_brand(station.brand),
                brand_canonical=canonical,
                brand_original=station.brand.strip() if station.brand else None,
                address=station.address,
                suburb=station.suburb,
                state=station.state,
                postcode=station.postcode,
                latitude=station.latitude,
                longitude=station.longitude,
                distance_km=round(distance, 2) if distance is not None else None,
                is_adblue_available=bool(station.is_adblue_available),
                prices=prices,
            ))

        log.info(
            "Nearby search: %d candidates, %d stations kept (radius %.1f km)",
            len(candidates), len(results), radius,
        )
        return NearbyStationsResult(
            stations=sort_stations(results, sort_by, sort_order),
            available_brands=available_brands,
            reference_latitude=latitude,
            reference_longitude=longitude,
        )

    async def cheapest_prices(
        self,
        db: AsyncSession,
        fuel_types: list[str] | None = None,
        brands: list[str] | None = None,
    ) -> list[CheapestPrice]:
        """Prix le plus bas par carburant / Cheapest current price per fuel type."""
        requested = self._requested_fuels(fuel_types)
        targets = sorted(requested if requested is not None else self.allowed_fuel_types)
        brand_filter = {b.lower() for b in normalize_brand_filters(brands)}

        results: list[CheapestPrice] = []
        for fuel in targets:
            rows = (await db.execute(
                select(FuelPrice)
                .options(selectinload(FuelPrice.station))
                .where(FuelPrice.fuel_type == fuel)
            )).scalars().all()

            candidates = []
            for price in rows:
                if price.station is None:
                    continue
                if brand_filter:
                    canonical = canonical_brand(price.station.brand)
                    if canonical is None or canonical.lower() not in brand_filter:
                        continue
                candidates.append(price)
            if not candidates:
                continue

            # Égalité : mise à jour la plus récente / Tie: most recent update wins
            best = min(
                candidates,
                key=lambda p: (p.price, -p.last_updated.timestamp() if p.last_updated else float("inf")),
            )
            station = best.station
            results.append(CheapestPrice(
                fuel_type=best.fuel_type,
                cents_per_litre=best.price,
                unit=best.unit,
                last_updated=best.last_updated,
                station=StationSummary(
                    station_code=station.station_code,
                    name=station.name,
                    brand=display_brand(station.brand),
                    brand_canonical=canonical_brand(station.brand),
                    brand_original=station.brand,
                    address=station.address,
                    suburb=station.suburb,
                    state=station.state,
                    postcode=station.postcode,
                    latitude=station.latitude,
                    longitude=station.longitude,
                ),
            ))
        return results
