"""
Network Mapping Service.

Public surface of the topology pathfinding and zone resolution engine:

  compute_path:   hop-bounded least-cost route between two nodes
  resolve_zone:   governing service zone for a coordinate
  coverage_check: governing zone plus the offers sellable there

Each call loads a fresh snapshot of the tenant's data and computes one
answer; nothing is cached between calls. The caller is trusted to have
authorised access to ``tenant_id``.
"""
import math
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import Settings, get_settings
from backend.app.core.logging import get_logger
from backend.app.schemas.network_mapping import (
    ComputePathRequest,
    ComputePathResponse,
    CoverageCheckRequest,
    CoverageCheckResponse,
    ResolvedZone,
    ResolvedZoneResponse,
    ResolveZoneRequest,
)
from backend.app.services.coverage import compose_coverage
from backend.app.services.edge_filter import PathConstraints, build_search_graph, get_cost_model
from backend.app.services.errors import NetworkMappingValidationError
from backend.app.services.geometry import Coordinate, is_valid_coordinate
from backend.app.services.network_repository import NetworkMappingRepository
from backend.app.services.path_finder import find_path
from backend.app.services.topology_snapshot import load_topology_snapshot
from backend.app.services.zone_resolver import resolve_zone, zone_from_row

logger = get_logger(__name__)


def _coordinate(lat: float, lng: float, field: str = "point") -> Coordinate:
    if not is_valid_coordinate(lat, lng):
        if not (math.isfinite(lat) and -90.0 <= lat <= 90.0):
            raise NetworkMappingValidationError(f"{field}.lat must be between -90 and 90")
        raise NetworkMappingValidationError(f"{field}.lng must be between -180 and 180")
    return Coordinate(lat=lat, lng=lng)


class NetworkMappingService:
    def __init__(self, store: NetworkMappingRepository, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()
        self.cost_model = get_cost_model(self.settings.path_cost_model)

    def _check_hop_budget(self, request: ComputePathRequest) -> None:
        if request.max_hops is None:
            return
        if request.max_hops < 0:
            raise NetworkMappingValidationError("max_hops must not be negative")
        if request.max_hops > self.settings.path_max_hops_limit:
            raise NetworkMappingValidationError(
                f"max_hops must not exceed {self.settings.path_max_hops_limit}"
            )

    async def compute_path(
        self,
        tenant_id: str,
        request: ComputePathRequest,
        session: Optional[AsyncSession] = None,
    ) -> ComputePathResponse:
        if request.source_node_id == request.target_node_id:
            raise NetworkMappingValidationError("source_node_id and target_node_id must be different")
        self._check_hop_budget(request)

        snapshot = await load_topology_snapshot(self.store, tenant_id, session=session)
        if not snapshot.knows_node(request.source_node_id):
            raise NetworkMappingValidationError("source_node_id not found")
        if not snapshot.knows_node(request.target_node_id):
            raise NetworkMappingValidationError("target_node_id not found")

        constraints = PathConstraints.from_request(
            request,
            default_max_hops=self.settings.path_default_max_hops,
            default_allowed_statuses=self.settings.path_default_allowed_statuses,
        )
        graph = build_search_graph(snapshot, constraints, self.cost_model)
        result = find_path(graph, request.source_node_id, request.target_node_id, constraints.max_hops)

        if result.found:
            logger.info(
                f"Path {request.source_node_id} -> {request.target_node_id} for tenant {tenant_id}: "
                f"{len(result.hops)} hop(s), cost {result.total_cost:.3f}"
            )
        else:
            logger.info(
                f"No path {request.source_node_id} -> {request.target_node_id} for tenant {tenant_id} "
                f"within {constraints.max_hops} hop(s)"
            )
        return result

    async def _resolve(
        self, tenant_id: str, point: Coordinate, session: Optional[AsyncSession]
    ) -> Optional[ResolvedZone]:
        rows = await self.store.list_active_zones(tenant_id, session=session)
        return resolve_zone([zone_from_row(row) for row in rows], point)

    async def resolve_zone(
        self,
        tenant_id: str,
        request: ResolveZoneRequest,
        session: Optional[AsyncSession] = None,
    ) -> ResolvedZoneResponse:
        point = _coordinate(request.lat, request.lng)
        zone = await self._resolve(tenant_id, point, session)
        logger.debug(f"Resolved ({point.lat}, {point.lng}) for tenant {tenant_id} to {zone.id if zone else 'no zone'}")
        return ResolvedZoneResponse(zone=zone)

    async def coverage_check(
        self,
        tenant_id: str,
        request: CoverageCheckRequest,
        session: Optional[AsyncSession] = None,
    ) -> CoverageCheckResponse:
        point = _coordinate(request.lat, request.lng)
        async with self.store.session_scope(session) as s:
            zone = await self._resolve(tenant_id, point, s)
            if zone is None:
                return compose_coverage(None)
            offer_rows = await self.store.list_active_offers(tenant_id, zone.id, session=s)

        coverage = compose_coverage(zone, offer_rows)
        logger.debug(f"Coverage for tenant {tenant_id} in zone {zone.id}: {len(coverage.offers)} offer(s)")
        return coverage
