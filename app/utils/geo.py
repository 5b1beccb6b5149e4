"""
Great-circle distance between two coordinates.
"""

from geopy.distance import great_circle

EARTH_RADIUS_KM = 6371.0


def distance_km(a, b) -> float:
    """
    Spherical (haversine-equivalent) distance in kilometres.

    `a` and `b` are anything with `lat`/`lng` attributes (Coordinates).
    """
    return great_circle((a.lat, a.lng), (b.lat, b.lng), radius=EARTH_RADIUS_KM).kilometers
