"""Utilitaires géographiques / Geographic utilities."""

import math

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LAT = 111.0
# Plancher du cosinus près des pôles / Cosine floor near the poles
MIN_COS_LAT = 0.01


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance Haversine en km / Haversine distance in km."""
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = math.sin(dlat / 2) ** 2 + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def bounding_box(lat: float, lon: float, radius_km: float) -> tuple[float, float, float, float]:
    """
    Boîte englobante autour d'un point / Bounding box around a point.
    Retourne (lat_min, lat_max, lon_min, lon_max).
    """
    delta_lat = radius_km / KM_PER_DEGREE_LAT
    cos_lat = max(abs(math.cos(math.radians(lat))), MIN_COS_LAT)
    delta_lon = radius_km / (KM_PER_DEGREE_LAT * cos_lat)
    return (lat - delta_lat, lat + delta_lat, lon - delta_lon, lon + delta_lon)


def is_valid_coordinate(lat: float | None, lon: float | None) -> bool:
    """Latitude/longitude dans les bornes / Latitude/longitude within range."""
    if lat is None or lon is None:
        return False
    if math.isnan(lat) or math.isnan(lon):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0
