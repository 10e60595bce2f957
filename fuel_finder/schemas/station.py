"""Schémas Stations à proximité / Nearby station schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class StationFuelPrice(BaseModel):
    fuel_type: str
    cents_per_litre: Decimal
    unit: str | None = None
    description: str | None = None
    last_updated: datetime | None = None
    # Coût total estimé en dollars pour le volume demandé / Estimated total cost in dollars
    estimated_cost: Decimal | None = None


class NearbyFuelStation(BaseModel):
    id: str
    name: str
    brand: str | None = None
    brand_canonical: str | None = None
    brand_original: str | None = None
    address: str | None = None
    suburb: str | None = None
    state: str | None = None
    postcode: str | None = None
    latitude: float
    longitude: float
    distance_km: float | None = None
    is_adblue_available: bool = False
    prices: list[StationFuelPrice] = []

    def cheapest_price(self) -> Decimal | None:
        """Prix le plus bas parmi les carburants retenus / Cheapest price among kept fuels."""
        if not self.prices:
            return None
        return min(p.cents_per_litre for p in self.prices)


class NearbyStationsResult(BaseModel):
    stations: list[NearbyFuelStation] = []
    available_brands: list[str] = []
    # Message utilisateur si la localisation est introuvable / User message when location not found
    message: str | None = None
    location_found: bool = True
    reference_latitude: float | None = None
    reference_longitude: float | None = None


class NearbyStationsResponse(BaseModel):
    latitude: float | None = None
    longitude: float | None = None
    radius_km: float
    count: int
    stations: list[NearbyFuelStation] = []
    available_brands: list[str] = []
    message: str | None = None


class StationSummary(BaseModel):
    station_code: str
    name: str | None = None
    brand: str | None = None
    brand_canonical: str | None = None
    brand_original: str | None = None
    address: str | None = None
    suburb: str | None = None
    state: str | None = None
    postcode: str | None = None
    latitude: float
    longitude: float


class CheapestPrice(BaseModel):
    fuel_type: str
    cents_per_litre: Decimal
    unit: str | None = None
    last_updated: datetime | None = None
    station: StationSummary
