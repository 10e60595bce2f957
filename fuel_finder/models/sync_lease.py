"""Modèle Bail de synchro / Sync lease model.

Verrou inter-instances pour les bases sans advisory lock (SQLite).
Cross-instance lock for stores without advisory locks (SQLite).
"""

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from fuel_finder.database import Base, UTCDateTime


class SyncLease(Base):
    __tablename__ = "sync_leases"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    holder: Mapped[str] = mapped_column(String(64), nullable=False)
    acquired_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<SyncLease {self.name} held by {self.holder} until {self.expires_at}>"
