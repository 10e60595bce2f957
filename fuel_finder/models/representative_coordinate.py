"""Modèle Coordonnée représentative / Representative coordinate model."""

from sqlalchemy import Boolean, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from fuel_finder.database import Base


class RepresentativeCoordinate(Base):
    """Point unique représentant un code postal / Single point standing in for a postcode area."""
    __tablename__ = "representative_coordinates"

    postcode: Mapped[str] = mapped_column(String(16), primary_key=True)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    label: Mapped[str | None] = mapped_column(String(128))
    manual: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return f"<RepresentativeCoordinate {self.postcode} ({self.latitude}, {self.longitude})>"
