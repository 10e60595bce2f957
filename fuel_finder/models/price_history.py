"""Modèle Historique des prix / Price history model."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from fuel_finder.database import Base, UTCDateTime


class FuelPriceHistory(Base):
    """Historique en ajout seul, une ligne par (station, carburant) et par synchro /
    Append-only history, one row per (station, fuel) per sync."""
    __tablename__ = "fuel_price_history"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    station_code: Mapped[str] = mapped_column(String(32), nullable=False)
    fuel_type: Mapped[str] = mapped_column(String(16), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)  # = horodatage de synchro

    __table_args__ = (
        Index("ix_fuel_price_history_station_fuel_recorded", "station_code", "fuel_type", "recorded_at"),
        Index("ix_fuel_price_history_recorded", "recorded_at"),
    )

    def __repr__(self) -> str:
        return f"<FuelPriceHistory {self.station_code}/{self.fuel_type} {self.recorded_at} = {self.price}>"
