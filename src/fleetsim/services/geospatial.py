"""Geospatial helper functions."""

from __future__ import annotations

import math

from shapely.geometry import LineString, Point, Polygon, box

from ..models.domain import Coordinate

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LAT = 111.32


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(a: Coordinate, b: Coordinate) -> float:
    return haversine_km(a[0], a[1], b[0], b[1])


def bearing_degrees(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the initial bearing from (lat1, lon1) to (lat2, lon2)."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_lambda = math.radians(lon2 - lon1)
    y = math.sin(delta_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda)
    bearing = math.degrees(math.atan2(y, x))
    return (bearing + 360) % 360


def destination_point(lat: float, lon: float, bearing: float, distance: float) -> Coordinate:
    """Point reached travelling ``distance`` km from (lat, lon) along ``bearing`` on a great circle."""

    phi1 = math.radians(lat)
    lambda1 = math.radians(lon)
    theta = math.radians(bearing)
    delta = distance / EARTH_RADIUS_KM

    phi2 = math.asin(
        math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(theta)
    )
    lambda2 = lambda1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(phi1),
        math.cos(delta) - math.sin(phi1) * math.sin(phi2),
    )
    lon2 = (math.degrees(lambda2) + 540) % 360 - 180
    return (math.degrees(phi2), lon2)


def interpolate_linear(start: Coordinate, end: Coordinate, fraction: float) -> Coordinate:
    """Straight lat/lon blend; good enough for densifying short route segments."""

    return (
        start[0] + (end[0] - start[0]) * fraction,
        start[1] + (end[1] - start[1]) * fraction,
    )


def square_around(lat: float, lon: float, half_side_km: float) -> Polygon:
    """Axis-aligned square (lon/lat polygon) centred on a point."""

    d_lat = half_side_km / KM_PER_DEGREE_LAT
    cos_lat = max(math.cos(math.radians(lat)), 1e-6)
    d_lon = half_side_km / (KM_PER_DEGREE_LAT * cos_lat)
    return box(lon - d_lon, lat - d_lat, lon + d_lon, lat + d_lat)


def distance_to_segment_km(point: Coordinate, start: Coordinate, end: Coordinate) -> float:
    """Approximate distance from ``point`` to the straight segment start->end.

    Projects onto a local equirectangular plane centred on the point, which is
    accurate for the city-scale trips the simulator deals with.
    """

    ref_lat = math.radians(point[0])

    def _project(coord: Coordinate) -> tuple[float, float]:
        x = math.radians(coord[1] - point[1]) * math.cos(ref_lat) * EARTH_RADIUS_KM
        y = math.radians(coord[0] - point[0]) * EARTH_RADIUS_KM
        return (x, y)

    segment = LineString([_project(start), _project(end)])
    if segment.length == 0:
        return distance_km(point, start)
    return segment.distance(Point(0.0, 0.0))


def along_track_fraction(point: Coordinate, start: Coordinate, end: Coordinate) -> float:
    """Position of ``point`` projected on start->end, as a fraction of the trip (unclamped)."""

    total = distance_km(start, end)
    if total == 0:
        return 0.0
    bearing_trip = bearing_degrees(start[0], start[1], end[0], end[1])
    bearing_point = bearing_degrees(start[0], start[1], point[0], point[1])
    along = distance_km(start, point) * math.cos(math.radians(bearing_point - bearing_trip))
    return along / total
