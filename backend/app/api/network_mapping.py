"""
Network Mapping API Router.

Path computation over the tenant's link graph, service zone resolution and
coverage checks. All endpoints require authentication and are tenant-scoped
by path parameter.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Security
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.database import async_session_maker, get_db
from backend.app.core.logging import tenant_id_ctx
from backend.app.core.security import COVERAGE_READ, NETWORK_READ, User, ensure_tenant_access, get_current_user
from backend.app.schemas.network_mapping import (
    ComputePathRequest,
    ComputePathResponse,
    CoverageCheckRequest,
    CoverageCheckResponse,
    ResolvedZoneResponse,
    ResolveZoneRequest,
)
from backend.app.services.errors import NetworkMappingValidationError
from backend.app.services.network_mapping_service import NetworkMappingService
from backend.app.services.network_repository import NetworkMappingRepository

logger = logging.getLogger(__name__)
router = APIRouter()


def get_network_mapping_service() -> NetworkMappingService:
    return NetworkMappingService(NetworkMappingRepository(async_session_maker))


@router.post("/{tenant_id}/paths/compute", response_model=ComputePathResponse)
async def compute_path(
    tenant_id: str,
    request: ComputePathRequest,
    db: AsyncSession = Depends(get_db),
    service: NetworkMappingService = Depends(get_network_mapping_service),
    current_user: User = Security(get_current_user, scopes=[NETWORK_READ]),
):
    """
    Compute the least-cost route between two nodes within a hop budget.
    A missing route is a 200 with ``found = false``. Requires network:read scope.
    """
    ensure_tenant_access(current_user, tenant_id)
    tenant_id_ctx.set(tenant_id)
    try:
        return await service.compute_path(tenant_id, request, session=db)
    except NetworkMappingValidationError as e:
        logger.warning(f"Rejected path request for tenant {tenant_id}: {e}")
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/{tenant_id}/zones/resolve", response_model=ResolvedZoneResponse)
async def resolve_zone(
    tenant_id: str,
    request: ResolveZoneRequest,
    db: AsyncSession = Depends(get_db),
    service: NetworkMappingService = Depends(get_network_mapping_service),
    current_user: User = Security(get_current_user, scopes=[COVERAGE_READ]),
):
    """Resolve the governing service zone for a coordinate. Requires coverage:read scope."""
    ensure_tenant_access(current_user, tenant_id)
    tenant_id_ctx.set(tenant_id)
    try:
        return await service.resolve_zone(tenant_id, request, session=db)
    except NetworkMappingValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/{tenant_id}/coverage/check", response_model=CoverageCheckResponse)
async def check_coverage(
    tenant_id: str,
    request: CoverageCheckRequest,
    db: AsyncSession = Depends(get_db),
    service: NetworkMappingService = Depends(get_network_mapping_service),
    current_user: User = Security(get_current_user, scopes=[COVERAGE_READ]),
):
    """
    What can be sold at this coordinate: the governing zone and its active offers.
    Requires coverage:read scope.
    """
    ensure_tenant_access(current_user, tenant_id)
    tenant_id_ctx.set(tenant_id)
    try:
        return await service.coverage_check(tenant_id, request, session=db)
    except NetworkMappingValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
