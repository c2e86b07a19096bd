"""
Unit tests for the hop-bounded shortest path finder.
"""
import math
import random

import pytest

from backend.app.schemas.network_mapping import ComputePathRequest
from backend.app.services.edge_filter import GraphEdge, PathConstraints, SearchGraph, build_search_graph
from backend.app.services.geometry import EARTH_RADIUS_M
from backend.app.services.path_finder import find_path
from backend.app.services.topology_snapshot import LinkRecord
from tests.data.network_fixtures import line_topology, make_link, make_node, make_snapshot

ONE_DEGREE_M = EARTH_RADIUS_M * math.pi / 180.0


def _search(snapshot, source, target, max_hops=10, **constraints):
    graph = build_search_graph(snapshot, PathConstraints(max_hops=max_hops, **constraints))
    return find_path(graph, source, target, max_hops)


def _weighted_graph(edges):
    """SearchGraph from (link_id, a, b, cost) tuples, bypassing geometry."""
    adjacency = {}
    for link_id, a, b, cost in edges:
        link = LinkRecord(id=link_id, from_node_id=a, to_node_id=b, name=link_id, link_type="fiber", status="active")
        adjacency.setdefault(a, []).append(GraphEdge(neighbor_id=b, link_id=link_id, cost=cost, distance_m=cost, link=link))
        adjacency.setdefault(b, []).append(GraphEdge(neighbor_id=a, link_id=link_id, cost=cost, distance_m=cost, link=link))
    node_ids = frozenset(n for _, a, b, _ in edges for n in (a, b))
    return SearchGraph(
        node_ids=node_ids,
        adjacency={n: tuple(sorted(es, key=lambda e: (e.link_id, e.neighbor_id))) for n, es in adjacency.items()},
    )


def _brute_force_cost(graph, source, target, max_hops):
    """Cheapest simple path within the hop budget, by exhaustive search."""
    best = None

    def walk(node, visited, cost, hops):
        nonlocal best
        if node == target:
            best = cost if best is None else min(best, cost)
            return
        if hops == max_hops:
            return
        for edge in graph.edges_from(node):
            if edge.neighbor_id not in visited:
                walk(edge.neighbor_id, visited | {edge.neighbor_id}, cost + edge.cost, hops + 1)

    walk(source, {source}, 0.0, 0)
    return best


def test_straight_line_path():
    result = _search(line_topology(), "N1", "N3", max_hops=5)

    assert result.found
    assert result.node_ids == ["N1", "N2", "N3"]
    assert result.link_ids == ["L1", "L2"]
    assert len(result.hops) == 2
    assert result.total_distance_m == pytest.approx(2 * ONE_DEGREE_M)
    assert result.total_cost == pytest.approx(2 * ONE_DEGREE_M * 1.1)


def test_excluding_the_only_bridge_means_no_path():
    result = _search(line_topology(), "N1", "N3", max_hops=5, exclude_link_ids=frozenset({"L2"}))

    assert not result.found
    assert result.node_ids == []
    assert result.link_ids == []
    assert result.hops == []
    assert result.total_cost is None
    assert result.source_node_id == "N1"
    assert result.target_node_id == "N3"


def test_hops_are_oriented_in_travel_direction():
    result = _search(line_topology(), "N3", "N1")

    assert result.node_ids == ["N3", "N2", "N1"]
    assert [(h.seq_no, h.link_id, h.from_node_id, h.to_node_id) for h in result.hops] == [
        (1, "L2", "N3", "N2"),
        (2, "L1", "N2", "N1"),
    ]
    for hop in result.hops:
        assert hop.link_type == "fiber"
        assert hop.status == "active"
        assert hop.name == hop.link_id
    assert sum(h.cost for h in result.hops) == pytest.approx(result.total_cost)


def test_path_invariants():
    result = _search(line_topology(), "N1", "N3")

    assert len(result.node_ids) == len(result.link_ids) + 1
    assert result.node_ids[0] == "N1"
    assert result.node_ids[-1] == "N3"
    assert len(set(result.link_ids)) == len(result.link_ids)


class TestHopBudget:
    @pytest.fixture
    def detour_topology(self):
        # A-B-C-D is cheap but three hops; A-D is direct but heavily loaded
        nodes = [make_node("A", 0, 0), make_node("B", 0, 1), make_node("C", 0, 2), make_node("D", 0, 3)]
        links = [
            make_link("L-AB", "A", "B", utilization_pct=0.0),
            make_link("L-BC", "B", "C", utilization_pct=0.0),
            make_link("L-CD", "C", "D", utilization_pct=0.0),
            make_link("L-AD", "A", "D", utilization_pct=200.0),
        ]
        return make_snapshot(nodes, links)

    def test_cheapest_route_when_budget_allows(self, detour_topology):
        result = _search(detour_topology, "A", "D", max_hops=3)
        assert result.link_ids == ["L-AB", "L-BC", "L-CD"]

    def test_dearer_route_when_cheapest_exceeds_budget(self, detour_topology):
        result = _search(detour_topology, "A", "D", max_hops=2)
        assert result.link_ids == ["L-AD"]
        assert result.total_cost == pytest.approx(3 * ONE_DEGREE_M * 3.0)

    def test_zero_budget_only_reaches_source(self, detour_topology):
        assert not _search(detour_topology, "A", "D", max_hops=0).found
        assert _search(detour_topology, "A", "A", max_hops=0).found

    @pytest.mark.parametrize("seed", range(25))
    def test_matches_exhaustive_search(self, seed):
        rng = random.Random(seed)
        node_ids = [f"N{i}" for i in range(7)]
        edges = []
        for i in range(12):
            a, b = rng.sample(node_ids, 2)
            edges.append((f"L{i:02d}", a, b, float(rng.randint(1, 20))))
        graph = _weighted_graph(edges)
        sources = sorted(graph.node_ids)

        for max_hops in (1, 2, 3, 5):
            for source in sources[:3]:
                for target in sources:
                    expected = _brute_force_cost(graph, source, target, max_hops)
                    result = find_path(graph, source, target, max_hops)
                    if expected is None:
                        assert not result.found
                    else:
                        assert result.found
                        assert result.total_cost == pytest.approx(expected)
                        assert len(result.link_ids) <= max_hops


class TestDeterminism:
    def test_parallel_links_tie_break_on_link_id(self):
        nodes = [make_node("A", 0, 0), make_node("B", 0, 1)]
        links = [make_link("L2", "A", "B"), make_link("L1", "B", "A")]

        for ordering in (links, links[::-1]):
            result = _search(make_snapshot(nodes, ordering), "A", "B")
            assert result.link_ids == ["L1"]

    def test_equal_cost_routes_tie_break_on_link_id(self):
        graph = _weighted_graph([
            ("L-b", "A", "X", 1.0),
            ("L-c", "X", "Z", 1.0),
            ("L-a", "A", "Y", 1.0),
            ("L-d", "Y", "Z", 1.0),
        ])
        result = find_path(graph, "A", "Z", 5)
        assert result.total_cost == pytest.approx(2.0)
        # Both routes reach Z at two hops; the last relaxation into Z keeps L-c over L-d
        assert result.link_ids == ["L-b", "L-c"]

    def test_equal_cost_prefers_fewer_hops(self):
        graph = _weighted_graph([
            ("L1", "A", "B", 1.0),
            ("L2", "B", "C", 1.0),
            ("L3", "A", "C", 2.0),
        ])
        result = find_path(graph, "A", "C", 5)
        assert result.link_ids == ["L3"]

    def test_row_order_does_not_change_result(self):
        nodes = [make_node(f"N{i}", 0.0, float(i)) for i in range(5)]
        links = [
            make_link("L1", "N0", "N1", utilization_pct=5.0),
            make_link("L2", "N1", "N2", utilization_pct=5.0),
            make_link("L3", "N2", "N4", utilization_pct=5.0),
            make_link("L4", "N0", "N3", utilization_pct=5.0),
            make_link("L5", "N3", "N4", utilization_pct=5.0),
            make_link("L6", "N1", "N3", utilization_pct=60.0),
        ]
        expected = _search(make_snapshot(nodes, links), "N0", "N4")
        for seed in range(5):
            rng = random.Random(seed)
            shuffled_nodes, shuffled_links = nodes[:], links[:]
            rng.shuffle(shuffled_nodes)
            rng.shuffle(shuffled_links)
            assert _search(make_snapshot(shuffled_nodes, shuffled_links), "N0", "N4") == expected


class TestNoPath:
    def test_disconnected_components(self):
        snapshot = make_snapshot(
            [make_node("A", 0, 0), make_node("B", 0, 1), make_node("C", 5, 5), make_node("D", 5, 6)],
            [make_link("L1", "A", "B"), make_link("L2", "C", "D")],
        )
        assert not _search(snapshot, "A", "D").found

    def test_inactive_source(self):
        snapshot = make_snapshot(
            [make_node("A", 0, 0, status="inactive"), make_node("B", 0, 1)],
            [make_link("L1", "A", "B")],
        )
        assert not _search(snapshot, "A", "B").found
        assert _search(snapshot, "A", "B", require_active_nodes=False).found

    def test_omitted_require_active_nodes_blocks_maintenance_endpoint(self):
        snapshot = make_snapshot(
            [make_node("A", 0, 0, status="maintenance"), make_node("B", 0, 1)],
            [make_link("L1", "A", "B")],
        )
        request = ComputePathRequest(source_node_id="A", target_node_id="B")
        constraints = PathConstraints.from_request(request, default_max_hops=10)

        result = find_path(build_search_graph(snapshot, constraints), "A", "B", constraints.max_hops)
        assert not result.found
        assert result.node_ids == []

    def test_node_without_coordinate_is_unreachable(self):
        snapshot = make_snapshot(
            [make_node("A", 0, 0), make_node("B", 95.0, 1)],
            [make_link("L1", "A", "B")],
        )
        assert snapshot.knows_node("B")
        assert not snapshot.has_node("B")
        assert not _search(snapshot, "A", "B").found

    def test_unknown_node(self):
        assert not _search(line_topology(), "N1", "N9").found


def test_source_equals_target():
    result = _search(line_topology(), "N2", "N2")

    assert result.found
    assert result.node_ids == ["N2"]
    assert result.link_ids == []
    assert result.hops == []
    assert result.total_cost == 0.0
    assert result.total_distance_m == 0.0
