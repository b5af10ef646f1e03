"""
Coordinate utilities.

Recovers degrees from fixed-point GPS encodings and measures great-circle
distances between fixes.
"""

from typing import Optional, Union

import numpy as np
from numpy.typing import NDArray


FIXED_POINT_SCALE = 1.0e7  # degrees * 1e7 integer encoding used by some flight controllers
MAX_LATITUDE = 90.0
MAX_LONGITUDE = 180.0
EARTH_RADIUS_M = 6371000  # mean radius

ArrayLike = Union[float, NDArray[np.float64]]


def normalize_fixed_point(lat: float, lng: float) -> tuple[float, float]:
    """
    Rescale lat/lng from 1e7 fixed point when outside geographic range.

    Each axis is checked independently. A value inside the valid range is
    returned untouched even if the other axis was rescaled.
    """
    if abs(lat) > MAX_LATITUDE:
        lat = lat / FIXED_POINT_SCALE
    if abs(lng) > MAX_LONGITUDE:
        lng = lng / FIXED_POINT_SCALE
    return lat, lng


def haversine_distance(
    lat1: ArrayLike,
    lon1: ArrayLike,
    lat2: ArrayLike,
    lon2: ArrayLike,
) -> ArrayLike:
    """
    Calculate great-circle distance between points.

    Works on scalars or numpy arrays (broadcast elementwise).

    Args:
        lat1, lon1: First point coordinates in degrees
        lat2, lon2: Second point coordinates in degrees

    Returns:
        Distance in meters
    """
    lat1_rad = np.radians(lat1)
    lat2_rad = np.radians(lat2)
    dlat = np.radians(lat2 - lat1)
    dlon = np.radians(lon2 - lon1)

    a = np.sin(dlat/2)**2 + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(dlon/2)**2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1-a))

    return EARTH_RADIUS_M * c


def max_distance_from_origin(
    lat: np.ndarray,
    lon: np.ndarray,
) -> Optional[float]:
    """
    Largest distance (meters) of any fix from the first one.

    Args:
        lat: Latitude array in degrees
        lon: Longitude array in degrees

    Returns:
        Max distance, or None when there are no fixes
    """
    lat = np.asarray(lat, dtype=np.float64)
    lon = np.asarray(lon, dtype=np.float64)
    if lat.size == 0:
        return None

    return float(np.max(haversine_distance(lat[0], lon[0], lat, lon)))
