"""Routes Localisation / Location API routes."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fuel_finder.api.deps import get_location_resolver
from fuel_finder.config import settings
from fuel_finder.database import get_db
from fuel_finder.rate_limit import limiter
from fuel_finder.schemas.location import RepresentativeCoordinateResult
from fuel_finder.services.location_resolver import LocationResolver

router = APIRouter()


@router.get("/resolve", response_model=RepresentativeCoordinateResult)
@limiter.limit(settings.RATE_LIMIT_DEFAULT)
async def resolve_location(
    request: Request,
    query: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    resolver: LocationResolver = Depends(get_location_resolver),
):
    """Suburb ou postcode -> coordonnée / Suburb or postcode -> coordinate."""
    result = await resolver.resolve(db, query)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Location '{query.strip()}' not found")
    return result
