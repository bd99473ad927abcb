"""
Shop geofence for the time clock.

Distances use the haversine formula on a spherical Earth, accurate to well
under a meter at the radii involved here.
"""

from dataclasses import dataclass
import math

from app.config import settings

EARTH_RADIUS_METERS = 6371e3


@dataclass(frozen=True)
class GeofenceCheck:
    within_range: bool
    distance: float
    allowed_radius: float
    location_name: str

    @property
    def distance_formatted(self) -> str:
        return format_distance(self.distance)


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points, in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.2f}km"


def check_shop_geofence(latitude: float, longitude: float) -> GeofenceCheck:
    """Is the point within GEOFENCE_RADIUS_METERS of the configured shop?"""
    distance = haversine_distance(
        latitude, longitude, settings.SHOP_LATITUDE, settings.SHOP_LONGITUDE
    )
    radius = settings.GEOFENCE_RADIUS_METERS
    return GeofenceCheck(
        within_range=settings.BYPASS_LOCATION_CHECK or distance <= radius,
        distance=distance,
        allowed_radius=radius,
        location_name=settings.SHOP_NAME,
    )
