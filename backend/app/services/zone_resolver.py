"""
Zone Resolver.

Finds the active service zone governing a coordinate. Overlaps are settled
by, in order: lower priority value, smaller bounding box of the containing
polygon (the more specific zone), lexicographically smaller zone id.
"""
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

from backend.app.schemas.network_mapping import ResolvedZone
from backend.app.services.geometry import Coordinate, MultiPolygon, decode_zone_geometry

DEFAULT_ZONE_PRIORITY = 100


@dataclass(frozen=True)
class ZoneRecord:
    id: str
    name: str
    zone_type: str
    priority: int
    status: str
    geometry: MultiPolygon

    @property
    def is_active(self) -> bool:
        return self.status == "active"


@dataclass(frozen=True)
class ZoneMatch:
    zone: ZoneRecord
    bbox_area: float

    @property
    def rank(self) -> Tuple[int, float, str]:
        return (self.zone.priority, self.bbox_area, self.zone.id)


def zone_from_row(row: Any) -> ZoneRecord:
    priority = getattr(row, "priority", None)
    return ZoneRecord(
        id=str(row.id),
        name=row.name or "",
        zone_type=getattr(row, "zone_type", None) or "",
        priority=priority if isinstance(priority, int) and not isinstance(priority, bool) else DEFAULT_ZONE_PRIORITY,
        status=(row.status or "").strip().lower(),
        geometry=decode_zone_geometry(getattr(row, "geometry", None)),
    )


def match_zones(zones: Iterable[ZoneRecord], point: Coordinate) -> List[ZoneMatch]:
    """All active zones containing the point, best match first."""
    matches = []
    for zone in zones:
        if not zone.is_active:
            continue
        containing = [p for p in zone.geometry.polygons if p.contains(point)]
        if not containing:
            continue
        matches.append(ZoneMatch(zone=zone, bbox_area=min(p.bbox_area for p in containing)))
    matches.sort(key=lambda m: m.rank)
    return matches


def resolve_zone(zones: Iterable[ZoneRecord], point: Coordinate) -> Optional[ResolvedZone]:
    matches = match_zones(zones, point)
    if not matches:
        return None
    winner = matches[0].zone
    return ResolvedZone(id=winner.id, name=winner.name, priority=winner.priority)
