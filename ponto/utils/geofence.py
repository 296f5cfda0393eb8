import logging
import math
from typing import List, Optional

from shapely.geometry import Point, Polygon

from .. import config

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6371000


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def check_within_geofence(latitude: float, longitude: float, geo_boundary: str) -> bool:
    """``geo_boundary`` is a polygon written as "lat,lng;lat,lng;..."."""
    if not geo_boundary:
        return False
    boundary_points = [tuple(map(float, coord.split(','))) for coord in geo_boundary.split(';')]
    if len(boundary_points) < 3:
        return False
    polygon = Polygon(boundary_points)
    point = Point(latitude, longitude)
    return polygon.contains(point)


def validate_location(latitude: float, longitude: float, allowed_locations: Optional[List[dict]]) -> dict:
    """
    Check a punch position against the employee's allowed locations.

    Returns ``{"isValid", "reason", "distance"}``. Locations carrying a
    ``geoBoundary`` polygon are tested for containment; the others are
    circles of ``radius`` meters around their coordinates. Without any
    allowed location the company default position is used.
    """
    if config.SKIP_LOCATION_VALIDATION:
        return {"isValid": True, "reason": "Location validation disabled", "distance": 0}

    locations = [loc for loc in (allowed_locations or []) if isinstance(loc, dict)]
    if not locations:
        locations = [{
            "name": "Company",
            "latitude": config.DEFAULT_LATITUDE,
            "longitude": config.DEFAULT_LONGITUDE,
            "radius": config.MAX_DISTANCE_METERS,
        }]

    nearest = None
    nearest_distance = None
    for location in locations:
        name = location.get("name", "location")
        if location.get("geoBoundary"):
            if check_within_geofence(latitude, longitude, location["geoBoundary"]):
                return {"isValid": True, "reason": f"Valid location - inside {name}", "distance": 0}
            continue

        try:
            distance = haversine_distance(latitude, longitude, float(location["latitude"]), float(location["longitude"]))
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Skipping malformed allowed location {location!r}")
            continue
        if distance <= float(location.get("radius") or 0):
            return {"isValid": True, "reason": f"Valid location - inside {name}", "distance": round(distance)}
        if nearest_distance is None or distance < nearest_distance:
            nearest, nearest_distance = location, distance

    if nearest is None:
        return {"isValid": False, "reason": "Location outside every allowed area", "distance": None}

    return {
        "isValid": False,
        "reason": (
            f"Invalid location - {round(nearest_distance)}m from the nearest allowed location "
            f"({nearest.get('name', 'location')}). Maximum allowed: {nearest.get('radius')}m"
        ),
        "distance": round(nearest_distance),
    }
