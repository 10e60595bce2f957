"""Routes Stations / Station API routes."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fuel_finder.api.deps import get_search_service, get_trend_service, merge_fuel_types
from fuel_finder.config import settings
from fuel_finder.database import get_db
from fuel_finder.rate_limit import limiter
from fuel_finder.schemas.station import NearbyStationsResponse
from fuel_finder.schemas.trend import FuelPriceTrend
from fuel_finder.services.station_search import InvalidReferencePoint, StationSearchService
from fuel_finder.services.trend_service import TrendService, clamp_period

router = APIRouter()

DEFAULT_RADIUS_KM = 5.0
MIN_RADIUS_KM = 1.0
MAX_RADIUS_KM = 50.0


@router.get("/nearby", response_model=NearbyStationsResponse)
@limiter.limit(settings.RATE_LIMIT_DEFAULT)
async def nearby_stations(
    request: Request,
    latitude: float | None = Query(None),
    longitude: float | None = Query(None),
    radius_km: float | None = Query(None, alias="radiusKm"),
    suburb: str | None = Query(None),
    volume_litres: float | None = Query(None, alias="volumeLitres"),
    sort_by: str | None = Query("distance", alias="sortBy"),
    sort_order: str | None = Query("asc", alias="sortOrder"),
    brands: list[str] | None = Query(None),
    fuel_types: list[str] | None = Query(None, alias="fuelTypes"),
    fuel_type: str | None = Query(None, alias="fuelType"),
    db: AsyncSession = Depends(get_db),
    service: StationSearchService = Depends(get_search_service),
):
    """Stations à proximité d'un point ou d'un suburb / Stations near a point or a suburb."""
    has_lat, has_lon = latitude is not None, longitude is not None
    if not has_lat and not has_lon and not (suburb and suburb.strip()):
        raise HTTPException(status_code=400, detail="Either coordinates or suburb must be provided.")
    if has_lat != has_lon:
        raise HTTPException(status_code=400, detail="Latitude and longitude must both be supplied together.")
    if has_lat and not -90 <= latitude <= 90:
        raise HTTPException(status_code=400, detail="Latitude must be a valid decimal degree value.")
    if has_lon and not -180 <= longitude <= 180:
        raise HTTPException(status_code=400, detail="Longitude must be a valid decimal degree value.")

    radius = min(max(radius_km if radius_km is not None else DEFAULT_RADIUS_KM, MIN_RADIUS_KM), MAX_RADIUS_KM)

    try:
        result = await service.search(
            db,
            latitude=latitude,
            longitude=longitude,
            radius_km=radius,
            suburb=suburb,
            fuel_types=merge_fuel_types(fuel_types, fuel_type),
            brands=brands,
            volume_litres=volume_litres,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except InvalidReferencePoint as e:
        raise HTTPException(status_code=400, detail=str(e))

    return NearbyStationsResponse(
        latitude=result.reference_latitude,
        longitude=result.reference_longitude,
        radius_km=radius,
        count=len(result.stations),
        stations=result.stations,
        available_brands=result.available_brands,
        message=result.message,
    )


@router.get("/{station_code}/trends", response_model=list[FuelPriceTrend])
@limiter.limit(settings.RATE_LIMIT_DEFAULT)
async def station_trends(
    request: Request,
    station_code: str,
    fuel_type: str | None = Query(None, alias="fuelType"),
    period_days: int | None = Query(None, alias="periodDays"),
    db: AsyncSession = Depends(get_db),
    service: TrendService = Depends(get_trend_service),
):
    """Tendances de prix d'une station / Price trends for a station."""
    if not station_code.strip():
        raise HTTPException(status_code=400, detail="Station code is required.")
    return await service.get_trends(db, station_code, fuel_type, clamp_period(period_days))
