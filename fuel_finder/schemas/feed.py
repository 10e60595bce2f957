"""
Schémas du flux API carburant NSW / NSW Fuel API feed schemas.
Les champs sont tolérants : valeurs absentes ou mal typées -> None.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_str_or_none(value):
    """Codes numériques ou texte -> str / Numeric or text codes -> str."""
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return value


class FeedModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class StationLocationPayload(FeedModel):
    latitude: float | None = None
    longitude: float | None = None
    distance: float | None = None


class FuelStationPayload(FeedModel):
    station_id: str | None = Field(default=None, alias="stationid")
    brand_id: str | None = Field(default=None, alias="brandid")
    code: str = ""
    brand: str | None = None
    name: str | None = None
    address: str | None = None
    location: StationLocationPayload | None = None
    suburb: str | None = None
    state: str | None = None
    postcode: str | None = None
    is_adblue_available: bool | None = Field(default=None, alias="isAdBlueAvailable")

    @field_validator("station_id", "brand_id", "postcode", mode="before")
    @classmethod
    def _coerce_codes(cls, value):
        return _to_str_or_none(value)

    @field_validator("brand", "name", "address", "suburb", "state", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        return _to_str_or_none(value)

    @field_validator("code", mode="before")
    @classmethod
    def _coerce_station_code(cls, value):
        return "" if value is None else _to_str_or_none(value)


class FuelPricePayload(FeedModel):
    station_code: str = Field(default="", alias="stationcode")
    fuel_type: str | None = Field(default=None, alias="fueltype")
    price: Decimal | None = None
    price_unit: str | None = Field(default=None, alias="priceunit")
    description: str | None = None
    price_updated_raw: str | None = Field(default=None, alias="priceupdated")
    last_updated_raw: str | None = Field(default=None, alias="lastupdated")

    @field_validator("station_code", mode="before")
    @classmethod
    def _coerce_station_code(cls, value):
        return "" if value is None else _to_str_or_none(value)

    @field_validator(
        "fuel_type", "price_unit", "description", "price_updated_raw", "last_updated_raw", mode="before"
    )
    @classmethod
    def _coerce_text(cls, value):
        return _to_str_or_none(value)

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value):
        # Prix illisible -> None, la ligne sera ignorée / Unreadable price -> None, row is skipped
        if value is None or value == "":
            return None
        try:
            return Decimal(str(value))
        except ArithmeticError:
            return None


class FuelFeedResponse(FeedModel):
    """Réponse all-prices ou nearby / All-prices or nearby response."""
    stations: list[FuelStationPayload] = []
    prices: list[FuelPricePayload] = []

    @field_validator("stations", "prices", mode="before")
    @classmethod
    def _null_to_empty(cls, value):
        return value if value is not None else []


class AccessTokenResponse(FeedModel):
    access_token: str | None = None
    token_type: str | None = None
    expires_in: str | None = None

    @field_validator("expires_in", mode="before")
    @classmethod
    def _coerce_expires(cls, value):
        return _to_str_or_none(value)


class NearbyFuelRequest(BaseModel):
    """Corps POST nearby (valeurs en texte) / Nearby POST body (string values)."""
    fueltype: str | None = None
    latitude: str
    longitude: str
    radius: str | None = None
    sortby: str = "distance"
    sortascending: str = "true"
