"""Modèle Station-service / Fuel station model."""

from datetime import datetime

from sqlalchemy import Boolean, Float, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fuel_finder.database import Base, UTCDateTime


class FuelStation(Base):
    """Station remplacée en bloc à chaque synchro / Station replaced wholesale on every sync."""
    __tablename__ = "fuel_stations"

    station_code: Mapped[str] = mapped_column(String(32), primary_key=True)
    station_id: Mapped[str | None] = mapped_column(String(64))
    brand_id: Mapped[str | None] = mapped_column(String(64))
    brand: Mapped[str | None] = mapped_column(String(128))
    brand_canonical: Mapped[str | None] = mapped_column(String(128), index=True)
    name: Mapped[str | None] = mapped_column(String(256))
    address: Mapped[str | None] = mapped_column(String(512))
    suburb: Mapped[str | None] = mapped_column(String(128), index=True)
    state: Mapped[str | None] = mapped_column(String(16))
    postcode: Mapped[str | None] = mapped_column(String(16))
    latitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    longitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    is_adblue_available: Mapped[bool] = mapped_column(Boolean, default=False)
    synced_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)

    # Relations
    prices: Mapped[list["FuelPrice"]] = relationship(
        back_populates="station",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<FuelStation {self.station_code} - {self.name}>"
