"""
ORM Models for Network Mapping.

Physical/logical network inventory (nodes, links), commercial service zones
and the offers sold inside them. All tables are tenant-scoped; geometry is
stored as GeoJSON and decoded by the topology snapshot loader.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)

from backend.app.core.database import Base


def _uuid_str() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NetworkNodeORM(Base):
    """
    A point in the tenant's network: core, pop, olt, router, tower, ap,
    splitter or customer_endpoint.
    """
    __tablename__ = "network_nodes"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    tenant_id = Column(String(50), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    node_type = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default="active")  # active, inactive, maintenance

    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)

    capacity_json = Column(JSON, nullable=False, default=dict)
    health_json = Column(JSON, nullable=False, default=dict)
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("idx_network_nodes_tenant_status", "tenant_id", "status"),
    )

    def __repr__(self) -> str:
        return f"NetworkNodeORM(id={self.id}, type={self.node_type}, name={self.name}, tenant_id={self.tenant_id})"


class NetworkLinkORM(Base):
    """
    A connection between two nodes. Stored with a from/to order but
    traversed as undirected.
    """
    __tablename__ = "network_links"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    tenant_id = Column(String(50), nullable=False, index=True)

    from_node_id = Column(String(36), ForeignKey("network_nodes.id", ondelete="CASCADE"), nullable=False)
    to_node_id = Column(String(36), ForeignKey("network_nodes.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(255), nullable=False)
    link_type = Column(String(50), nullable=False)  # fiber, lan, wireless, ptp_radio
    status = Column(String(20), nullable=False, default="active")
    priority = Column(Integer, nullable=False, default=100)

    capacity_mbps = Column(Float, nullable=True)
    utilization_pct = Column(Float, nullable=True)
    loss_db = Column(Float, nullable=True)
    latency_ms = Column(Float, nullable=True)

    # GeoJSON LineString / MultiLineString; NULL means straight line between endpoints
    geometry = Column(JSON, nullable=True)
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("idx_network_links_tenant_status", "tenant_id", "status"),
        Index("idx_network_links_nodes", "from_node_id", "to_node_id"),
    )


class ServiceZoneORM(Base):
    """Commercial coverage area. Lower priority value wins on overlap."""
    __tablename__ = "service_zones"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    tenant_id = Column(String(50), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    zone_type = Column(String(50), nullable=False)
    priority = Column(Integer, nullable=False, default=100)
    status = Column(String(20), nullable=False, default="active")  # active, inactive

    # GeoJSON Polygon / MultiPolygon
    geometry = Column(JSON, nullable=False)
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("idx_service_zones_tenant_status_priority", "tenant_id", "status", "priority"),
    )


class ZoneNodeBindingORM(Base):
    """Inventory association of a zone to the nodes that serve it."""
    __tablename__ = "zone_node_bindings"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    tenant_id = Column(String(50), nullable=False, index=True)
    zone_id = Column(String(36), ForeignKey("service_zones.id", ondelete="CASCADE"), nullable=False)
    node_id = Column(String(36), ForeignKey("network_nodes.id", ondelete="CASCADE"), nullable=False)
    is_primary = Column(Boolean, nullable=False, default=False)
    weight = Column(Integer, nullable=False, default=100)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        UniqueConstraint("zone_id", "node_id", name="uq_zone_node_bindings_zone_node"),
    )


class IspPackageORM(Base):
    """Sellable internet package from the tenant's catalog."""
    __tablename__ = "isp_packages"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    tenant_id = Column(String(50), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    features = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    price_monthly = Column(Float, nullable=False, default=0.0)
    price_yearly = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class ZoneOfferORM(Base):
    """A package offered inside a zone, with optional price overrides."""
    __tablename__ = "zone_offers"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    tenant_id = Column(String(50), nullable=False, index=True)
    zone_id = Column(String(36), ForeignKey("service_zones.id", ondelete="CASCADE"), nullable=False)
    package_id = Column(String(36), ForeignKey("isp_packages.id", ondelete="CASCADE"), nullable=False)
    price_monthly = Column(Float, nullable=True)
    price_yearly = Column(Float, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("zone_id", "package_id", name="uq_zone_offers_zone_package"),
        Index("idx_zone_offers_tenant_zone", "tenant_id", "zone_id"),
    )
