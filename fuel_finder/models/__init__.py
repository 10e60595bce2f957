"""
Modèles SQLAlchemy / SQLAlchemy models.
Importer tous les modèles ici pour que create_all les détecte.
Import all models here so create_all can detect them.
"""

from fuel_finder.models.station import FuelStation
from fuel_finder.models.price import FuelPrice
from fuel_finder.models.price_history import FuelPriceHistory
from fuel_finder.models.representative_coordinate import RepresentativeCoordinate
from fuel_finder.models.sync_lease import SyncLease

__all__ = [
    "FuelStation",
    "FuelPrice",
    "FuelPriceHistory",
    "RepresentativeCoordinate",
    "SyncLease",
]
