"""Schémas Localisation / Location schemas."""

from pydantic import BaseModel


class RepresentativeCoordinateResult(BaseModel):
    postcode: str
    latitude: float
    longitude: float
    label: str | None = None
