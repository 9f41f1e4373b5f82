# geo_utils.py
# Pure mathematical / geographic helper functions.
# No side effects, no imports from other project modules.

import math

import numpy as np


EARTH_RADIUS_M = 6_371_000.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in metres.

    Args:
        lat1, lon1: Origin in decimal degrees.
        lat2, lon2: Destination in decimal degrees.

    Returns:
        Distance in metres. NaN if any input is not finite.
    """
    if not all(math.isfinite(v) for v in (lat1, lon1, lat2, lon2)):
        return math.nan
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    a = min(1.0, a)
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def haversine_distances(lat: float, lon: float, lats: np.ndarray, lons: np.ndarray) -> np.ndarray:
    """
    Vectorised haversine from one point to many, in metres.

    Args:
        lat, lon:   Origin in decimal degrees.
        lats, lons: Arrays of destination coordinates.

    Returns:
        Array of distances, same shape as lats.
    """
    rlat = np.radians(lat)
    rlats = np.radians(np.asarray(lats, dtype=float))
    d_lat = rlats - rlat
    d_lon = np.radians(np.asarray(lons, dtype=float) - lon)
    a = np.sin(d_lat / 2) ** 2 + np.cos(rlat) * np.cos(rlats) * np.sin(d_lon / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def to_unit_vectors(lats: np.ndarray, lons: np.ndarray) -> np.ndarray:
    """(n, 3) cartesian coordinates on the unit sphere."""
    rlat = np.radians(np.asarray(lats, dtype=float))
    rlon = np.radians(np.asarray(lons, dtype=float))
    cos_lat = np.cos(rlat)
    return np.column_stack((cos_lat * np.cos(rlon), cos_lat * np.sin(rlon), np.sin(rlat)))


def arc_to_chord(distance_m: float) -> float:
    """
    Straight-line length through the unit sphere for a surface arc.

    Chord length grows monotonically with arc length up to half the
    circumference, which is what lets a euclidean tree answer great-circle
    queries. Arcs of half the circumference or more map to the diameter.
    """
    theta = distance_m / EARTH_RADIUS_M
    if theta >= math.pi:
        return 2.0
    return 2.0 * math.sin(theta / 2.0)


def is_valid_coordinate(lat: float, lon: float) -> bool:
    return (
        math.isfinite(lat)
        and math.isfinite(lon)
        and -90.0 <= lat <= 90.0
        and -180.0 <= lon <= 180.0
    )
