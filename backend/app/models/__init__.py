"""Models package."""

from backend.app.models.network_mapping_orm import (
    NetworkNodeORM,
    NetworkLinkORM,
    ServiceZoneORM,
    ZoneNodeBindingORM,
    IspPackageORM,
    ZoneOfferORM,
)

__all__ = [
    "NetworkNodeORM",
    "NetworkLinkORM",
    "ServiceZoneORM",
    "ZoneNodeBindingORM",
    "IspPackageORM",
    "ZoneOfferORM",
]
