"""Routes API / API routes."""

from fastapi import APIRouter

from fuel_finder.api import locations, prices, stations

api_router = APIRouter(prefix="/api")

api_router.include_router(stations.router, prefix="/stations", tags=["stations"])
api_router.include_router(prices.router, prefix="/prices", tags=["prices"])
api_router.include_router(locations.router, prefix="/locations", tags=["locations"])
