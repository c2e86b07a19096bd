"""
Edge Filter & Cost Model.

Turns a topology snapshot plus path constraints into a weighted, undirected
adjacency list. Every exclusion here is hard: a link that fails a check is
not in the graph at all, it is never merely penalised.

Cost models are plain callables ``(link, distance_m) -> cost`` selected by
the PATH_COST_MODEL setting:

  utilization: distance_m * (1 + utilization_pct / 100) (default)
  composite:   distance_km + latency/utilization/loss terms + status penalty
"""
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from backend.app.core.logging import get_logger
from backend.app.schemas.network_mapping import ComputePathRequest
from backend.app.services.geometry import distance_m
from backend.app.services.topology_snapshot import LinkRecord, TopologySnapshot, normalize_status

logger = get_logger(__name__)

CostModel = Callable[[LinkRecord, float], float]


def utilization_weighted_cost(link: LinkRecord, link_distance_m: float) -> float:
    distance = max(link_distance_m, 0.0)
    if link.utilization_pct is None:
        return distance
    return distance * (1.0 + max(link.utilization_pct, 0.0) / 100.0)


COMPOSITE_STATUS_PENALTIES = {
    "degraded": 25.0,
    "planning": 75.0,
}


def composite_cost(link: LinkRecord, link_distance_m: float) -> float:
    distance_km = max(link_distance_m, 0.0) / 1000.0
    latency_component = (link.latency_ms or 0.0) * 0.2
    utilization_component = (link.utilization_pct or 0.0) * 0.1
    loss_component = abs(link.loss_db or 0.0) * 5.0
    status_penalty = COMPOSITE_STATUS_PENALTIES.get(link.status, 0.0)
    return max(
        distance_km + latency_component + utilization_component + loss_component + status_penalty,
        0.0001,
    )


COST_MODELS: Dict[str, CostModel] = {
    "utilization": utilization_weighted_cost,
    "composite": composite_cost,
}


def get_cost_model(name: str) -> CostModel:
    model = COST_MODELS.get((name or "").strip().lower())
    if model is None:
        logger.warning(f"Unknown path cost model '{name}', falling back to utilization")
        return utilization_weighted_cost
    return model


def _normalized_set(values: Optional[Iterable[str]], normalize: Callable[[str], str]) -> Optional[FrozenSet[str]]:
    # None and [] both mean "no restriction"
    if not values:
        return None
    return frozenset(normalize(v) for v in values)


@dataclass(frozen=True)
class PathConstraints:
    max_hops: int
    max_utilization_pct: Optional[float] = None
    allowed_link_types: Optional[FrozenSet[str]] = None
    allowed_statuses: Optional[FrozenSet[str]] = frozenset({"active"})
    exclude_link_ids: FrozenSet[str] = frozenset()
    require_active_nodes: bool = True

    @classmethod
    def from_request(
        cls,
        request: ComputePathRequest,
        default_max_hops: int,
        default_allowed_statuses: Iterable[str] = ("active",),
    ) -> "PathConstraints":
        if request.allowed_statuses is None:
            allowed_statuses = _normalized_set(default_allowed_statuses, normalize_status)
        else:
            allowed_statuses = _normalized_set(request.allowed_statuses, normalize_status)
        return cls(
            max_hops=request.max_hops if request.max_hops is not None else default_max_hops,
            max_utilization_pct=request.max_utilization_pct,
            allowed_link_types=_normalized_set(request.allowed_link_types, lambda v: v.strip().lower()),
            allowed_statuses=allowed_statuses,
            exclude_link_ids=frozenset(request.exclude_link_ids or ()),
            require_active_nodes=request.require_active_nodes is not False,
        )


@dataclass(frozen=True)
class GraphEdge:
    """One direction of a traversable link."""
    neighbor_id: str
    link_id: str
    cost: float
    distance_m: float
    link: LinkRecord


@dataclass
class SearchGraph:
    node_ids: FrozenSet[str]
    adjacency: Mapping[str, Tuple[GraphEdge, ...]]
    dropped: Counter = field(default_factory=Counter)

    def edges_from(self, node_id: str) -> Tuple[GraphEdge, ...]:
        return self.adjacency.get(node_id, ())

    @property
    def edge_count(self) -> int:
        return sum(len(edges) for edges in self.adjacency.values()) // 2


def link_distance_m(link: LinkRecord, snapshot: TopologySnapshot) -> float:
    """Length of the explicit path geometry, else the straight endpoint-to-endpoint line."""
    if link.path:
        return sum(line.length_m for line in link.path)
    source = snapshot.node(link.from_node_id)
    target = snapshot.node(link.to_node_id)
    if source is None or target is None:
        return 0.0
    return distance_m(source.location, target.location)


def _drop_reason(link: LinkRecord, snapshot: TopologySnapshot, constraints: PathConstraints) -> Optional[str]:
    if link.id in constraints.exclude_link_ids:
        return "excluded"
    if constraints.allowed_statuses is not None and link.status not in constraints.allowed_statuses:
        return "status"
    if constraints.allowed_link_types is not None and link.link_type not in constraints.allowed_link_types:
        return "link_type"
    if (
        constraints.max_utilization_pct is not None
        and link.utilization_pct is not None
        and link.utilization_pct > constraints.max_utilization_pct
    ):
        return "utilization"

    source = snapshot.node(link.from_node_id)
    target = snapshot.node(link.to_node_id)
    if constraints.require_active_nodes:
        if (source is not None and not source.is_active) or (target is not None and not target.is_active):
            return "inactive_node"
    if source is None or target is None:
        return "dangling"
    if link.from_node_id == link.to_node_id:
        return "self_loop"
    return None


def build_search_graph(
    snapshot: TopologySnapshot,
    constraints: PathConstraints,
    cost_model: CostModel = utilization_weighted_cost,
) -> SearchGraph:
    """
    Apply the constraints to the snapshot and return the undirected,
    cost-weighted adjacency list. Edge lists are sorted by link id.
    """
    if constraints.require_active_nodes:
        node_ids = frozenset(n.id for n in snapshot.nodes.values() if n.is_active)
    else:
        node_ids = frozenset(snapshot.nodes)

    adjacency: Dict[str, List[GraphEdge]] = {}
    dropped: Counter = Counter()

    for link in snapshot.links:
        reason = _drop_reason(link, snapshot, constraints)
        if reason is not None:
            dropped[reason] += 1
            continue

        link_distance = link_distance_m(link, snapshot)
        cost = max(cost_model(link, link_distance), 0.0)
        adjacency.setdefault(link.from_node_id, []).append(
            GraphEdge(neighbor_id=link.to_node_id, link_id=link.id, cost=cost, distance_m=link_distance, link=link)
        )
        adjacency.setdefault(link.to_node_id, []).append(
            GraphEdge(neighbor_id=link.from_node_id, link_id=link.id, cost=cost, distance_m=link_distance, link=link)
        )

    graph = SearchGraph(
        node_ids=node_ids,
        adjacency={
            node_id: tuple(sorted(edges, key=lambda e: (e.link_id, e.neighbor_id)))
            for node_id, edges in sorted(adjacency.items())
        },
        dropped=dropped,
    )
    logger.debug(
        f"Search graph for tenant {snapshot.tenant_id}: {len(graph.node_ids)} nodes, "
        f"{graph.edge_count} edges, dropped {dict(dropped)}"
    )
    return graph
