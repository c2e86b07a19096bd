"""
Read queries over the network mapping tables.

This is the storage side of the engine: plain tenant-scoped row reads.
Inventory writes belong to the CRUD layer and are not exposed here.
"""
from contextlib import asynccontextmanager
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.app.models.network_mapping_orm import (
    IspPackageORM,
    NetworkLinkORM,
    NetworkNodeORM,
    ServiceZoneORM,
    ZoneOfferORM,
)


class NetworkMappingRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @asynccontextmanager
    async def session_scope(self, session: Optional[AsyncSession] = None):
        if session:
            yield session
        else:
            async with self.session_factory() as new_session:
                try:
                    yield new_session
                    await new_session.commit()
                except Exception:
                    await new_session.rollback()
                    raise
                finally:
                    await new_session.close()

    async def list_nodes(self, tenant_id: str, session: Optional[AsyncSession] = None) -> Sequence[NetworkNodeORM]:
        async with self.session_scope(session) as s:
            result = await s.execute(
                select(NetworkNodeORM)
                .where(NetworkNodeORM.tenant_id == tenant_id)
                .order_by(NetworkNodeORM.id)
            )
            return result.scalars().all()

    async def list_links(self, tenant_id: str, session: Optional[AsyncSession] = None) -> Sequence[NetworkLinkORM]:
        async with self.session_scope(session) as s:
            result = await s.execute(
                select(NetworkLinkORM)
                .where(NetworkLinkORM.tenant_id == tenant_id)
                .order_by(NetworkLinkORM.id)
            )
            return result.scalars().all()

    async def list_active_zones(self, tenant_id: str, session: Optional[AsyncSession] = None) -> Sequence[ServiceZoneORM]:
        async with self.session_scope(session) as s:
            result = await s.execute(
                select(ServiceZoneORM)
                .where(
                    ServiceZoneORM.tenant_id == tenant_id,
                    ServiceZoneORM.status == "active",
                )
                .order_by(ServiceZoneORM.id)
            )
            return result.scalars().all()

    async def list_active_offers(
        self, tenant_id: str, zone_id: str, session: Optional[AsyncSession] = None
    ) -> List[Tuple[ZoneOfferORM, IspPackageORM]]:
        """Active offers of a zone joined with their (active) package, most recently updated first."""
        async with self.session_scope(session) as s:
            result = await s.execute(
                select(ZoneOfferORM, IspPackageORM)
                .join(IspPackageORM, IspPackageORM.id == ZoneOfferORM.package_id)
                .where(
                    ZoneOfferORM.tenant_id == tenant_id,
                    ZoneOfferORM.zone_id == zone_id,
                    ZoneOfferORM.is_active.is_(True),
                    IspPackageORM.tenant_id == tenant_id,
                    IspPackageORM.is_active.is_(True),
                )
                .order_by(ZoneOfferORM.updated_at.desc(), ZoneOfferORM.id)
            )
            return [(offer, package) for offer, package in result.all()]
