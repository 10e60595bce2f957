"""Modèle Prix courant / Current fuel price model."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuel_finder.database import Base, UTCDateTime


class FuelPrice(Base):
    """Prix par station et carburant, en cents/litre / Price per station and fuel, in cents per litre."""
    __tablename__ = "fuel_prices"

    station_code: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("fuel_stations.station_code", ondelete="CASCADE"),
        primary_key=True,
    )
    fuel_type: Mapped[str] = mapped_column(String(16), primary_key=True, index=True)
    price: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    unit: Mapped[str | None] = mapped_column(String(16))
    description: Mapped[str | None] = mapped_column(String(256))
    last_updated: Mapped[datetime | None] = mapped_column(UTCDateTime, index=True)

    # Relations
    station: Mapped["FuelStation"] = relationship(back_populates="prices")

    def __repr__(self) -> str:
        return f"<FuelPrice {self.station_code}/{self.fuel_type} = {self.price}>"
