"""
Network Mapping API Schemas.

Request/response contracts for path computation, zone resolution and
coverage checks. Field names and optionality are part of the contract.
"""
from typing import List, Optional

from pydantic import BaseModel, Field


class ComputePathRequest(BaseModel):
    """Constraints for a hop-bounded least-cost route between two nodes."""
    source_node_id: str = Field(min_length=1)
    target_node_id: str = Field(min_length=1)
    max_hops: Optional[int] = Field(default=None, ge=0)
    max_utilization_pct: Optional[float] = Field(default=None, ge=0.0)
    allowed_link_types: Optional[List[str]] = None
    allowed_statuses: Optional[List[str]] = None
    exclude_link_ids: Optional[List[str]] = None
    require_active_nodes: Optional[bool] = None


class ComputedPathHop(BaseModel):
    """One traversed link, oriented in the direction of travel."""
    seq_no: int
    link_id: str
    from_node_id: str
    to_node_id: str
    name: str
    link_type: str
    status: str
    distance_m: float
    cost: float


class ComputePathResponse(BaseModel):
    found: bool
    source_node_id: str
    target_node_id: str
    node_ids: List[str] = Field(default_factory=list)
    link_ids: List[str] = Field(default_factory=list)
    hops: List[ComputedPathHop] = Field(default_factory=list)
    total_cost: Optional[float] = None
    total_distance_m: Optional[float] = None


class ResolveZoneRequest(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)


class ResolvedZone(BaseModel):
    id: str
    name: str
    priority: int


class ResolvedZoneResponse(BaseModel):
    zone: Optional[ResolvedZone] = None


class CoverageCheckRequest(ResolveZoneRequest):
    pass


class ZoneOfferResponse(BaseModel):
    """An active zone offer joined with its package."""
    id: str
    zone_id: str
    package_id: str
    package_name: str
    package_description: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    # Zone-level overrides; None means the package price applies
    price_monthly: Optional[float] = None
    price_yearly: Optional[float] = None
    effective_price_monthly: float
    effective_price_yearly: float


class CoverageCheckResponse(BaseModel):
    zone: Optional[ResolvedZone] = None
    offers: List[ZoneOfferResponse] = Field(default_factory=list)
