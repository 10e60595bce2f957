"""Routes Prix / Price API routes."""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fuel_finder.api.deps import get_search_service, merge_fuel_types
from fuel_finder.config import settings
from fuel_finder.database import get_db
from fuel_finder.rate_limit import limiter
from fuel_finder.schemas.station import CheapestPrice
from fuel_finder.services.station_search import StationSearchService

router = APIRouter()


@router.get("/cheapest", response_model=list[CheapestPrice])
@limiter.limit(settings.RATE_LIMIT_DEFAULT)
async def cheapest_prices(
    request: Request,
    fuel_types: list[str] | None = Query(None, alias="fuelTypes"),
    fuel_type: str | None = Query(None, alias="fuelType"),
    brands: list[str] | None = Query(None),
    db: AsyncSession = Depends(get_db),
    service: StationSearchService = Depends(get_search_service),
):
    """Prix le plus bas par carburant / Cheapest price per fuel type."""
    return await service.cheapest_prices(db, merge_fuel_types(fuel_types, fuel_type), brands)
