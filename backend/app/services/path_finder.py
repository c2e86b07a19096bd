"""
Hop-Bounded Shortest Path Finder.

Finds the least-cost route between two nodes that uses at most ``max_hops``
links. Plain Dijkstra is not enough here: its cheapest route may need more
hops than allowed while a slightly dearer route fits the budget.

Layered relaxation (Bellman-Ford restricted to ``max_hops`` rounds):

  best[h][node] = min cost to reach node using exactly h links

Layer h+1 is produced by relaxing every edge out of every node reached in
layer h. Edges are visited in link-id order and a tie at the same
(node, h) keeps the relaxation via the smaller link id, so the result never
depends on storage row order. The answer is the cheapest layer for the
target; equal costs prefer fewer hops.

Time O(max_hops * |edges|), space O(|nodes| * max_hops).
"""
from typing import Dict, List, Optional, Tuple

from backend.app.schemas.network_mapping import ComputePathResponse, ComputedPathHop
from backend.app.services.edge_filter import GraphEdge, SearchGraph

Parent = Tuple[str, GraphEdge]


def no_path(source_id: str, target_id: str) -> ComputePathResponse:
    return ComputePathResponse(found=False, source_node_id=source_id, target_node_id=target_id)


def _ordered_edges(graph: SearchGraph) -> List[Parent]:
    return sorted(
        ((node_id, edge) for node_id, edges in graph.adjacency.items() for edge in edges),
        key=lambda item: (item[1].link_id, item[0]),
    )


def find_path(graph: SearchGraph, source_id: str, target_id: str, max_hops: int) -> ComputePathResponse:
    if max_hops < 0 or source_id not in graph.node_ids or target_id not in graph.node_ids:
        return no_path(source_id, target_id)

    edges = _ordered_edges(graph)
    best: List[Dict[str, float]] = [{} for _ in range(max_hops + 1)]
    parents: List[Dict[str, Parent]] = [{} for _ in range(max_hops + 1)]
    best[0][source_id] = 0.0

    for h in range(max_hops):
        layer = best[h]
        if not layer:
            break
        next_layer = best[h + 1]
        next_parents = parents[h + 1]
        for node_id, edge in edges:
            base = layer.get(node_id)
            if base is None:
                continue
            candidate = base + edge.cost
            current = next_layer.get(edge.neighbor_id)
            if (
                current is None
                or candidate < current
                or (candidate == current and edge.link_id < next_parents[edge.neighbor_id][1].link_id)
            ):
                next_layer[edge.neighbor_id] = candidate
                next_parents[edge.neighbor_id] = (node_id, edge)

    best_hops: Optional[int] = None
    total_cost = 0.0
    for h in range(max_hops + 1):
        cost = best[h].get(target_id)
        if cost is not None and (best_hops is None or cost < total_cost):
            best_hops, total_cost = h, cost

    if best_hops is None:
        return no_path(source_id, target_id)

    steps: List[Parent] = []
    cursor = target_id
    for h in range(best_hops, 0, -1):
        previous, edge = parents[h][cursor]
        steps.append((previous, edge))
        cursor = previous
    steps.reverse()

    hops = [
        ComputedPathHop(
            seq_no=seq_no,
            link_id=edge.link_id,
            from_node_id=from_node_id,
            to_node_id=edge.neighbor_id,
            name=edge.link.name,
            link_type=edge.link.link_type,
            status=edge.link.status,
            distance_m=edge.distance_m,
            cost=edge.cost,
        )
        for seq_no, (from_node_id, edge) in enumerate(steps, start=1)
    ]

    return ComputePathResponse(
        found=True,
        source_node_id=source_id,
        target_node_id=target_id,
        node_ids=[source_id] + [hop.to_node_id for hop in hops],
        link_ids=[hop.link_id for hop in hops],
        hops=hops,
        total_cost=total_cost,
        total_distance_m=sum(hop.distance_m for hop in hops),
    )
