"""Great-circle helpers for clue targeting and clue text."""

import math

from hideseek.logic.models import Location

EARTH_RADIUS_METERS = 6_371_000

_COMPASS_POINTS = (
    "north",
    "northeast",
    "east",
    "southeast",
    "south",
    "southwest",
    "west",
    "northwest",
)


def distance_meters(a: Location, b: Location) -> float:
    """Haversine distance between two coordinates."""
    lat1, lon1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lon2 = math.radians(b.latitude), math.radians(b.longitude)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(h))


def bearing_degrees(origin: Location, target: Location) -> float:
    """Initial bearing from origin to target, 0..360 clockwise from north."""
    lat1, lon1 = math.radians(origin.latitude), math.radians(origin.longitude)
    lat2, lon2 = math.radians(target.latitude), math.radians(target.longitude)
    dlon = lon2 - lon1
    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    return (math.degrees(math.atan2(y, x)) + 360) % 360


def compass_direction(origin: Location, target: Location) -> str:
    index = int(((bearing_degrees(origin, target) + 22.5) % 360) // 45)
    return _COMPASS_POINTS[index]
