"""Path geometry shapes returned by the routing provider.

GraphHopper answers with one of three shapes depending on request flags and
server version: an encoded polyline string, a GeoJSON ``LineString`` (lon/lat
pairs), or a plain list of lat/lon points. Each shape is its own type with
its own normaliser; everything downstream only ever sees ``list[Coordinate]``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import singledispatch
from typing import Any, Mapping, Sequence, Union

from ...models.domain import Coordinate
from .errors import GeometryUnparseable

DEFAULT_POLYLINE_MULTIPLIER = 1e5


@dataclass(frozen=True, slots=True)
class EncodedPolyline:
    text: str
    multiplier: float = DEFAULT_POLYLINE_MULTIPLIER


@dataclass(frozen=True, slots=True)
class GeoJSONLine:
    coordinates: tuple[tuple[float, ...], ...]


@dataclass(frozen=True, slots=True)
class PointList:
    points: tuple[tuple[float, ...], ...]


PathGeometry = Union[EncodedPolyline, GeoJSONLine, PointList]


def decode_polyline(polyline: str, multiplier: float = DEFAULT_POLYLINE_MULTIPLIER) -> list[Coordinate]:
    """Decode Google polyline string to list of (lat, lon) coordinates.

    GraphHopper uses the same encoding as OSRM but reports the precision in
    ``points_encoded_multiplier`` (1e5 unless configured otherwise).

    Args:
        polyline: Encoded polyline string
        multiplier: Coordinate scaling factor used by the encoder

    Returns:
        List of (latitude, longitude) tuples
    """
    coordinates = []
    index = 0
    lat = 0
    lon = 0

    while index < len(polyline):
        # Decode latitude
        shift = 0
        result = 0
        while True:
            b = ord(polyline[index]) - 63
            index += 1
            result |= (b & 0x1f) << shift
            shift += 5
            if b < 0x20:
                break
        dlat = ~(result >> 1) if (result & 1) else (result >> 1)
        lat += dlat

        # Decode longitude
        shift = 0
        result = 0
        while True:
            b = ord(polyline[index]) - 63
            index += 1
            result |= (b & 0x1f) << shift
            shift += 5
            if b < 0x20:
                break
        dlon = ~(result >> 1) if (result & 1) else (result >> 1)
        lon += dlon

        coordinates.append((lat / multiplier, lon / multiplier))

    return coordinates


def _as_pairs(values: Any) -> tuple[tuple[float, ...], ...]:
    if not isinstance(values, (list, tuple)):
        raise GeometryUnparseable(f"Expected a coordinate list, got {type(values).__name__}.")
    pairs = []
    for item in values:
        if not isinstance(item, (list, tuple)) or len(item) < 2:
            raise GeometryUnparseable(f"Malformed coordinate entry: {item!r}")
        try:
            pairs.append(tuple(float(value) for value in item))
        except (TypeError, ValueError) as exc:
            raise GeometryUnparseable(f"Non-numeric coordinate entry: {item!r}") from exc
    return tuple(pairs)


def parse_path_geometry(path: Mapping[str, Any]) -> PathGeometry:
    """Classify the geometry of one provider path."""

    points = path.get("points")
    if points is None:
        raise GeometryUnparseable("Path has no 'points' field.")

    if isinstance(points, str):
        # a string is only meaningful as an encoded polyline, whatever points_encoded says
        multiplier = path.get("points_encoded_multiplier") or DEFAULT_POLYLINE_MULTIPLIER
        try:
            multiplier = float(multiplier)
        except (TypeError, ValueError) as exc:
            raise GeometryUnparseable(f"Invalid polyline multiplier: {multiplier!r}") from exc
        return EncodedPolyline(text=points, multiplier=multiplier)

    if isinstance(points, Mapping):
        if "coordinates" not in points:
            raise GeometryUnparseable(f"GeoJSON geometry without coordinates (type={points.get('type')!r}).")
        return GeoJSONLine(coordinates=_as_pairs(points["coordinates"]))

    if isinstance(points, (list, tuple)):
        return PointList(points=_as_pairs(points))

    raise GeometryUnparseable(f"Unsupported points type: {type(points).__name__}.")


@singledispatch
def normalize_geometry(geometry: Any) -> list[Coordinate]:
    raise GeometryUnparseable(f"No normaliser for {type(geometry).__name__}.")


@normalize_geometry.register
def _(geometry: EncodedPolyline) -> list[Coordinate]:
    try:
        return decode_polyline(geometry.text, geometry.multiplier)
    except (IndexError, ZeroDivisionError) as exc:
        raise GeometryUnparseable(f"Polyline could not be decoded: {exc}") from exc


@normalize_geometry.register
def _(geometry: GeoJSONLine) -> list[Coordinate]:
    return [(pair[1], pair[0]) for pair in geometry.coordinates]


@normalize_geometry.register
def _(geometry: PointList) -> list[Coordinate]:
    return [(pair[0], pair[1]) for pair in geometry.points]


def validate_coordinates(points: Sequence[Coordinate]) -> list[Coordinate]:
    """Reject NaNs and out-of-range values a broken decoder can produce."""

    cleaned: list[Coordinate] = []
    for lat, lon in points:
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise GeometryUnparseable(f"Non-finite coordinate ({lat}, {lon}).")
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
            raise GeometryUnparseable(f"Coordinate out of range ({lat}, {lon}).")
        cleaned.append((lat, lon))
    return cleaned


def geometry_from_path(path: Mapping[str, Any]) -> list[Coordinate]:
    """Parse and normalise a provider path into (lat, lon) pairs."""

    return validate_coordinates(normalize_geometry(parse_path_geometry(path)))
