"""Schémas Tendances de prix / Price trend schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class FuelPriceTrendPoint(BaseModel):
    recorded_at: datetime
    price: Decimal


class FuelPriceTrend(BaseModel):
    fuel_type: str
    points: list[FuelPriceTrendPoint] = []
