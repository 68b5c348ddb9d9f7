"""
Great-circle distance on a spherical Earth.

Uses the haversine formula with the IUGG mean Earth radius. Accurate to
roughly 0.5% against the ellipsoid, which is far below GPS collar noise.
"""
import math

# Mean Earth radius in metres (IUGG)
EARTH_RADIUS_M = 6_371_008.8


def haversine_m(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """
    Great-circle distance in metres between two (longitude, latitude) points.

    Argument order is (lon, lat) to match the (x, y) convention used by the
    clustering engine and Movebank exports (location-long first).

    Returns:
        Distance in metres; exactly 0.0 for identical coordinates.
    """
    if lon1 == lon2 and lat1 == lat2:
        return 0.0

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    a = min(1.0, a)  # rounding can push antipodal points just past 1
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c
