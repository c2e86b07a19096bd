"""
Topology Snapshot Loader.

Reads a tenant's nodes and links in one session and decodes them into an
immutable, id-indexed snapshot. Filtering is left to the edge filter; the
only rows discarded here are ones that cannot be decoded (e.g. a node with
no usable coordinate).
"""
import math
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Set, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.logging import get_logger
from backend.app.services.geometry import Coordinate, Polyline, decode_line_geometry, is_valid_coordinate

logger = get_logger(__name__)

# Legacy link status vocabulary
STATUS_ALIASES = {
    "up": "active",
    "down": "inactive",
}


def normalize_status(value: Optional[str]) -> str:
    status = (value or "").strip().lower()
    return STATUS_ALIASES.get(status, status)


@dataclass(frozen=True)
class NodeRecord:
    id: str
    name: str
    node_type: str
    status: str
    location: Coordinate
    capacity: Mapping[str, Any] = field(default_factory=dict)
    health: Mapping[str, Any] = field(default_factory=dict)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status == "active"


@dataclass(frozen=True)
class LinkRecord:
    id: str
    from_node_id: str
    to_node_id: str
    name: str
    link_type: str
    status: str
    priority: int = 100
    capacity_mbps: Optional[float] = None
    utilization_pct: Optional[float] = None
    loss_db: Optional[float] = None
    latency_ms: Optional[float] = None
    # Empty means the straight line between the endpoints
    path: Tuple[Polyline, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TopologySnapshot:
    """Arena of one tenant's nodes and links, indexed by id."""
    tenant_id: str
    nodes: Mapping[str, NodeRecord]
    links: Tuple[LinkRecord, ...]
    # Stored nodes left out of ``nodes`` because their coordinate is unusable
    unplaced_node_ids: FrozenSet[str] = frozenset()

    def node(self, node_id: str) -> Optional[NodeRecord]:
        return self.nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def knows_node(self, node_id: str) -> bool:
        """True for any stored node, placed or not."""
        return node_id in self.nodes or node_id in self.unplaced_node_ids


def _optional_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def _as_mapping(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def node_from_row(row: Any) -> Optional[NodeRecord]:
    lat = _optional_float(getattr(row, "lat", None))
    lng = _optional_float(getattr(row, "lng", None))
    if lat is None or lng is None or not is_valid_coordinate(lat, lng):
        return None
    return NodeRecord(
        id=str(row.id),
        name=row.name or "",
        node_type=row.node_type or "",
        status=normalize_status(row.status),
        location=Coordinate(lat=lat, lng=lng),
        capacity=_as_mapping(getattr(row, "capacity_json", None)),
        health=_as_mapping(getattr(row, "health_json", None)),
        metadata=_as_mapping(getattr(row, "metadata_json", None)),
    )


def link_from_row(row: Any) -> LinkRecord:
    priority = getattr(row, "priority", None)
    return LinkRecord(
        id=str(row.id),
        from_node_id=str(row.from_node_id),
        to_node_id=str(row.to_node_id),
        name=row.name or "",
        link_type=(row.link_type or "").strip().lower(),
        status=normalize_status(row.status),
        priority=priority if isinstance(priority, int) else 100,
        capacity_mbps=_optional_float(getattr(row, "capacity_mbps", None)),
        utilization_pct=_optional_float(getattr(row, "utilization_pct", None)),
        loss_db=_optional_float(getattr(row, "loss_db", None)),
        latency_ms=_optional_float(getattr(row, "latency_ms", None)),
        path=decode_line_geometry(getattr(row, "geometry", None)),
        metadata=_as_mapping(getattr(row, "metadata_json", None)),
    )


def build_topology_snapshot(tenant_id: str, node_rows: Iterable[Any], link_rows: Iterable[Any]) -> TopologySnapshot:
    """
    Decode storage rows into a snapshot.

    Rows are ordered by id so the snapshot does not depend on the order
    storage returned them in.
    """
    nodes: Dict[str, NodeRecord] = {}
    unplaced: Set[str] = set()
    for row in sorted(node_rows, key=lambda r: str(r.id)):
        node = node_from_row(row)
        if node is None:
            unplaced.add(str(row.id))
            continue
        nodes.setdefault(node.id, node)

    links: Dict[str, LinkRecord] = {}
    for row in sorted(link_rows, key=lambda r: str(r.id)):
        link = link_from_row(row)
        links.setdefault(link.id, link)

    unplaced -= nodes.keys()
    if unplaced:
        logger.warning(f"Skipped {len(unplaced)} node(s) without a usable coordinate for tenant {tenant_id}")

    return TopologySnapshot(
        tenant_id=tenant_id, nodes=nodes, links=tuple(links.values()), unplaced_node_ids=frozenset(unplaced)
    )


async def load_topology_snapshot(store, tenant_id: str, session: Optional[AsyncSession] = None) -> TopologySnapshot:
    """
    Load a tenant's topology through the storage collaborator.

    Nodes and links are read inside one session so a computation never sees
    a link's endpoints from a different state than the nodes. Storage errors
    propagate unchanged.
    """
    async with store.session_scope(session) as s:
        node_rows = await store.list_nodes(tenant_id, session=s)
        link_rows = await store.list_links(tenant_id, session=s)

    snapshot = build_topology_snapshot(tenant_id, node_rows, link_rows)
    logger.debug(
        f"Loaded topology snapshot for tenant {tenant_id}: "
        f"{len(snapshot.nodes)} nodes, {len(snapshot.links)} links"
    )
    return snapshot
