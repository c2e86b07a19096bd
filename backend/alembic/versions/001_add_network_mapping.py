"""Create network mapping tables

Revision ID: 001_add_network_mapping
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_add_network_mapping'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    ]


def upgrade() -> None:
    """Create nodes, links, zones, bindings, packages and zone offers."""
    op.create_table(
        'network_nodes',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('tenant_id', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('node_type', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='active', nullable=False),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('lng', sa.Float(), nullable=False),
        sa.Column('capacity_json', sa.JSON(), nullable=False),
        sa.Column('health_json', sa.JSON(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_network_nodes_tenant_id', 'network_nodes', ['tenant_id'], unique=False)
    op.create_index('idx_network_nodes_tenant_status', 'network_nodes', ['tenant_id', 'status'], unique=False)

    op.create_table(
        'network_links',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('tenant_id', sa.String(length=50), nullable=False),
        sa.Column('from_node_id', sa.String(length=36), sa.ForeignKey('network_nodes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('to_node_id', sa.String(length=36), sa.ForeignKey('network_nodes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('link_type', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='active', nullable=False),
        sa.Column('priority', sa.Integer(), server_default='100', nullable=False),
        sa.Column('capacity_mbps', sa.Float(), nullable=True),
        sa.Column('utilization_pct', sa.Float(), nullable=True),
        sa.Column('loss_db', sa.Float(), nullable=True),
        sa.Column('latency_ms', sa.Float(), nullable=True),
        sa.Column('geometry', sa.JSON(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_network_links_tenant_id', 'network_links', ['tenant_id'], unique=False)
    op.create_index('idx_network_links_tenant_status', 'network_links', ['tenant_id', 'status'], unique=False)
    op.create_index('idx_network_links_nodes', 'network_links', ['from_node_id', 'to_node_id'], unique=False)

    op.create_table(
        'service_zones',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('tenant_id', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('zone_type', sa.String(length=50), nullable=False),
        sa.Column('priority', sa.Integer(), server_default='100', nullable=False),
        sa.Column('status', sa.String(length=20), server_default='active', nullable=False),
        sa.Column('geometry', sa.JSON(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_service_zones_tenant_id', 'service_zones', ['tenant_id'], unique=False)
    op.create_index(
        'idx_service_zones_tenant_status_priority', 'service_zones', ['tenant_id', 'status', 'priority'], unique=False
    )

    op.create_table(
        'zone_node_bindings',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('tenant_id', sa.String(length=50), nullable=False),
        sa.Column('zone_id', sa.String(length=36), sa.ForeignKey('service_zones.id', ondelete='CASCADE'), nullable=False),
        sa.Column('node_id', sa.String(length=36), sa.ForeignKey('network_nodes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_primary', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('weight', sa.Integer(), server_default='100', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('zone_id', 'node_id', name='uq_zone_node_bindings_zone_node'),
    )
    op.create_index('ix_zone_node_bindings_tenant_id', 'zone_node_bindings', ['tenant_id'], unique=False)

    op.create_table(
        'isp_packages',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('tenant_id', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('features', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('price_monthly', sa.Float(), server_default='0', nullable=False),
        sa.Column('price_yearly', sa.Float(), server_default='0', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_isp_packages_tenant_id', 'isp_packages', ['tenant_id'], unique=False)

    op.create_table(
        'zone_offers',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('tenant_id', sa.String(length=50), nullable=False),
        sa.Column('zone_id', sa.String(length=36), sa.ForeignKey('service_zones.id', ondelete='CASCADE'), nullable=False),
        sa.Column('package_id', sa.String(length=36), sa.ForeignKey('isp_packages.id', ondelete='CASCADE'), nullable=False),
        sa.Column('price_monthly', sa.Float(), nullable=True),
        sa.Column('price_yearly', sa.Float(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('zone_id', 'package_id', name='uq_zone_offers_zone_package'),
    )
    op.create_index('ix_zone_offers_tenant_id', 'zone_offers', ['tenant_id'], unique=False)
    op.create_index('idx_zone_offers_tenant_zone', 'zone_offers', ['tenant_id', 'zone_id'], unique=False)


def downgrade() -> None:
    """Drop network mapping tables."""
    op.drop_index('idx_zone_offers_tenant_zone', table_name='zone_offers')
    op.drop_index('ix_zone_offers_tenant_id', table_name='zone_offers')
    op.drop_table('zone_offers')
    op.drop_index('ix_isp_packages_tenant_id', table_name='isp_packages')
    op.drop_table('isp_packages')
    op.drop_index('ix_zone_node_bindings_tenant_id', table_name='zone_node_bindings')
    op.drop_table('zone_node_bindings')
    op.drop_index('idx_service_zones_tenant_status_priority', table_name='service_zones')
    op.drop_index('ix_service_zones_tenant_id', table_name='service_zones')
    op.drop_table('service_zones')
    op.drop_index('idx_network_links_nodes', table_name='network_links')
    op.drop_index('idx_network_links_tenant_status', table_name='network_links')
    op.drop_index('ix_network_links_tenant_id', table_name='network_links')
    op.drop_table('network_links')
    op.drop_index('idx_network_nodes_tenant_status', table_name='network_nodes')
    op.drop_index('ix_network_nodes_tenant_id', table_name='network_nodes')
    op.drop_table('network_nodes')
