"""
Field Geometry
Geodesic polygon area on the WGS84 ellipsoid and great-circle distances.

Points are (lat, lng) in decimal degrees everywhere in this module.
"""
from collections.abc import Sequence
from math import asin, cos, radians, sin, sqrt

from pyproj import Geod

EARTH_RADIUS_KM = 6371.0
SQUARE_METERS_PER_HECTARE = 10_000

_geod = Geod(ellps="WGS84")

LatLng = tuple[float, float]


class GeometryError(ValueError):
    """Polygon cannot be measured."""


def _validate_point(point: LatLng) -> LatLng:
    lat, lng = point
    if not -90 <= lat <= 90:
        raise GeometryError(f"Latitude out of range: {lat}")
    if not -180 <= lng <= 180:
        raise GeometryError(f"Longitude out of range: {lng}")
    return (float(lat), float(lng))


def normalize_ring(points: Sequence[LatLng]) -> list[LatLng]:
    """
    Validate a polygon ring and return it open (no repeated closing vertex).

    Raises:
        GeometryError: fewer than 3 distinct vertices or coordinates out of range
    """
    ring = [_validate_point(p) for p in points]
    if len(ring) > 1 and ring[0] == ring[-1]:
        ring = ring[:-1]
    if len(set(ring)) < 3:
        raise GeometryError("Polygon needs at least 3 distinct points")
    return ring


def polygon_area_m2(points: Sequence[LatLng]) -> float:
    ring = normalize_ring(points)
    lats = [p[0] for p in ring]
    lngs = [p[1] for p in ring]
    # Signed by winding order
    area, _ = _geod.polygon_area_perimeter(lngs, lats)
    return abs(area)


def polygon_area_ha(points: Sequence[LatLng]) -> float:
    """Geodesic area of a polygon in hectares, rounded to 4 decimals."""
    area_ha = round(polygon_area_m2(points) / SQUARE_METERS_PER_HECTARE, 4)
    if area_ha <= 0:
        raise GeometryError("Polygon has zero area")
    return area_ha


def polygon_perimeter_m(points: Sequence[LatLng]) -> float:
    ring = normalize_ring(points)
    _, perimeter = _geod.polygon_area_perimeter([p[1] for p in ring], [p[0] for p in ring])
    return perimeter


def centroid(points: Sequence[LatLng]) -> LatLng:
    """Vertex average. Good enough for travel distance on field-sized polygons."""
    ring = normalize_ring(points)
    return (
        sum(p[0] for p in ring) / len(ring),
        sum(p[1] for p in ring) / len(ring),
    )


def haversine_km(a: LatLng, b: LatLng) -> float:
    """Great-circle distance between two points in kilometres."""
    lat1, lng1, lat2, lng2 = map(radians, [a[0], a[1], b[0], b[1]])
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * asin(sqrt(h))
