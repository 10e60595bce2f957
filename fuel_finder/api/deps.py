"""
Dépendances des routes / Route dependencies.
Le résolveur est partagé entre requêtes pour garder son cache TTL.
The resolver is shared across requests so its TTL cache survives.
"""

from fastapi import Depends

from fuel_finder.config import settings
from fuel_finder.services.location_resolver import LocationResolver
from fuel_finder.services.station_search import StationSearchService
from fuel_finder.services.trend_service import TrendService

location_resolver = LocationResolver(ttl_seconds=settings.COORDINATE_CACHE_TTL_MINUTES * 60)


def get_location_resolver() -> LocationResolver:
    return location_resolver


def get_search_service(resolver: LocationResolver = Depends(get_location_resolver)) -> StationSearchService:
    return StationSearchService(resolver, settings.ALLOWED_FUEL_TYPES)


def get_trend_service() -> TrendService:
    return TrendService()


def merge_fuel_types(fuel_types: list[str] | None, fuel_type: str | None) -> list[str]:
    """Fusionne fuelTypes[] et fuelType / Merge fuelTypes[] and fuelType."""
    merged = [f for f in (fuel_types or []) if f and f.strip()]
    if fuel_type and fuel_type.strip():
        merged.append(fuel_type)
    return merged
