"""
Geometry Kernel.

Pure geodesic and planar helpers used by path costing and zone resolution,
plus the closed set of geometry variants that stored GeoJSON is decoded into.

Coordinates are (lat, lng) in degrees. GeoJSON positions are [lng, lat].
Containment is planar: longitude is the x axis and latitude the y axis.
Nothing in this module raises for degenerate shapes; empty or collapsed
rings simply contain nothing and empty polylines have zero length.
"""
import math
from dataclasses import dataclass
from numbers import Real
from typing import Any, Iterable, Optional, Sequence, Tuple

EARTH_RADIUS_M = 6_371_000.0


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float


Ring = Tuple[Coordinate, ...]


@dataclass(frozen=True)
class Polyline:
    points: Tuple[Coordinate, ...]

    @property
    def length_m(self) -> float:
        return polyline_length_m(self.points)


@dataclass(frozen=True)
class Polygon:
    """Ring 0 is the exterior boundary, any further rings are holes."""
    rings: Tuple[Ring, ...]

    @property
    def bbox_area(self) -> float:
        return bounding_box_area(self.rings)

    def contains(self, point: Coordinate) -> bool:
        return point_in_polygon(point, self.rings)


@dataclass(frozen=True)
class MultiPolygon:
    polygons: Tuple[Polygon, ...] = ()

    def contains(self, point: Coordinate) -> bool:
        return point_in_multipolygon(point, [p.rings for p in self.polygons])


def is_valid_coordinate(lat: float, lng: float) -> bool:
    return (
        math.isfinite(lat)
        and math.isfinite(lng)
        and -90.0 <= lat <= 90.0
        and -180.0 <= lng <= 180.0
    )


def distance_m(a: Coordinate, b: Coordinate) -> float:
    """Great-circle (haversine) distance in meters."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    dphi = phi2 - phi1
    dlambda = math.radians(b.lng - a.lng)
    h = (
        math.sin(dphi / 2.0) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2.0) ** 2
    )
    return 2.0 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(max(0.0, h))))


def polyline_length_m(points: Sequence[Coordinate]) -> float:
    total = 0.0
    for i in range(1, len(points)):
        total += distance_m(points[i - 1], points[i])
    return total


def point_in_ring(point: Coordinate, ring: Sequence[Coordinate]) -> bool:
    """Even-odd ray casting. Works for closed and unclosed rings."""
    if len(ring) < 3:
        return False
    x, y = point.lng, point.lat
    inside = False
    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i].lng, ring[i].lat
        xj, yj = ring[j].lng, ring[j].lat
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside


def point_in_polygon(point: Coordinate, rings: Sequence[Sequence[Coordinate]]) -> bool:
    if not rings:
        return False
    if not point_in_ring(point, rings[0]):
        return False
    return not any(point_in_ring(point, hole) for hole in rings[1:])


def point_in_multipolygon(point: Coordinate, polygons: Iterable[Sequence[Sequence[Coordinate]]]) -> bool:
    return any(point_in_polygon(point, rings) for rings in polygons)


def bounding_box_area(rings: Sequence[Sequence[Coordinate]]) -> float:
    """
    Area in square degrees of the axis-aligned box around ring 0.

    Only used to rank overlapping zones by specificity; it is not the
    polygon's true area.
    """
    if not rings or not rings[0]:
        return 0.0
    lats = [c.lat for c in rings[0]]
    lngs = [c.lng for c in rings[0]]
    return (max(lngs) - min(lngs)) * (max(lats) - min(lats))


# --- GeoJSON decoding -------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def decode_position(value: Any) -> Optional[Coordinate]:
    """Decode a GeoJSON position ``[lng, lat, ...]``; None when malformed."""
    if not isinstance(value, (list, tuple)) or len(value) < 2:
        return None
    lng, lat = value[0], value[1]
    if not (_is_number(lng) and _is_number(lat)):
        return None
    lat, lng = float(lat), float(lng)
    if not is_valid_coordinate(lat, lng):
        return None
    return Coordinate(lat=lat, lng=lng)


def _decode_positions(value: Any) -> Optional[Tuple[Coordinate, ...]]:
    if not isinstance(value, (list, tuple)):
        return None
    points = []
    for raw in value:
        point = decode_position(raw)
        if point is None:
            return None
        points.append(point)
    return tuple(points)


def _decode_polygon(value: Any) -> Optional[Polygon]:
    # A polygon with any malformed ring is dropped whole: losing a hole
    # would widen coverage.
    if not isinstance(value, (list, tuple)) or not value:
        return None
    rings = []
    for raw_ring in value:
        ring = _decode_positions(raw_ring)
        if ring is None:
            return None
        rings.append(ring)
    return Polygon(rings=tuple(rings))


def decode_zone_geometry(geojson: Any) -> MultiPolygon:
    """
    Decode a GeoJSON Polygon or MultiPolygon.

    Malformed polygons are dropped; a zone left with no polygons matches
    no point.
    """
    if not isinstance(geojson, dict):
        return MultiPolygon()
    kind = geojson.get("type")
    coords = geojson.get("coordinates")
    if kind == "Polygon":
        raw_polygons = [coords]
    elif kind == "MultiPolygon" and isinstance(coords, (list, tuple)):
        raw_polygons = list(coords)
    else:
        return MultiPolygon()

    polygons = []
    for raw in raw_polygons:
        polygon = _decode_polygon(raw)
        if polygon is not None:
            polygons.append(polygon)
    return MultiPolygon(polygons=tuple(polygons))


def decode_line_geometry(geojson: Any) -> Tuple[Polyline, ...]:
    """
    Decode a GeoJSON LineString or MultiLineString into polylines.

    Returns an empty tuple for absent or malformed input, in which case
    callers fall back to the straight line between link endpoints.
    """
    if not isinstance(geojson, dict):
        return ()
    kind = geojson.get("type")
    coords = geojson.get("coordinates")
    if kind == "LineString":
        raw_lines = [coords]
    elif kind == "MultiLineString" and isinstance(coords, (list, tuple)):
        raw_lines = list(coords)
    else:
        return ()

    lines = []
    for raw in raw_lines:
        points = _decode_positions(raw)
        if points is None:
            return ()
        if len(points) >= 2:
            lines.append(Polyline(points=points))
    return tuple(lines)
