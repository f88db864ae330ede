"""initial logistics schema

Revision ID: 20261017_initial
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '20261017_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name):
    """Check if a table exists in the database"""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade():
    # 1. Users and their issued sessions
    if not table_exists('users'):
        op.create_table(
            'users',
            sa.Column('id', sa.String(), primary_key=True),
            sa.Column('phone', sa.String(20), nullable=False, unique=True),
            sa.Column('password_hash', sa.String(), nullable=False),
            sa.Column('name', sa.String(100), nullable=False),
            sa.Column('email', sa.String(100), nullable=True),
            sa.Column('role', sa.String(20), nullable=False, server_default='client'),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('is_approved', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('last_login', sa.DateTime(), nullable=True),
            sa.Column('created_by_id', sa.String(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index('idx_users_role', 'users', ['role'])

    if not table_exists('user_sessions'):
        op.create_table(
            'user_sessions',
            sa.Column('id', sa.String(), primary_key=True),
            sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column('expires_at', sa.DateTime(), nullable=False),
            sa.Column('revoked_at', sa.DateTime(), nullable=True),
            sa.Column('user_agent', sa.String(), nullable=True),
            sa.Column('ip_address', sa.String(), nullable=True),
        )
        op.create_index('idx_user_sessions_user', 'user_sessions', ['user_id'])

    # 2. Latest driver position (one row per driver)
    if not table_exists('driver_locations'):
        op.create_table(
            'driver_locations',
            sa.Column('id', sa.String(), primary_key=True),
            sa.Column('driver_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
            sa.Column('latitude', sa.Float(), nullable=False),
            sa.Column('longitude', sa.Float(), nullable=False),
            sa.Column('accuracy', sa.Float(), nullable=True),
            sa.Column('speed', sa.Float(), nullable=True),
            sa.Column('heading', sa.Float(), nullable=True),
            sa.Column('battery_level', sa.Integer(), nullable=True),
            sa.Column('is_gps_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index('idx_driver_locations_updated', 'driver_locations', ['updated_at'])

    # 3. Shipments, status history and scans
    if not table_exists('shipments'):
        op.create_table(
            'shipments',
            sa.Column('id', sa.String(), primary_key=True),
            sa.Column('tracking_number', sa.String(50), nullable=False, unique=True),
            sa.Column('qr_token', sa.String(64), nullable=True, unique=True),
            sa.Column('customer_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
            sa.Column('driver_id', sa.String(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
            sa.Column('pickup_address', sa.Text(), nullable=True),
            sa.Column('pickup_latitude', sa.Float(), nullable=True),
            sa.Column('pickup_longitude', sa.Float(), nullable=True),
            sa.Column('destination_address', sa.Text(), nullable=False),
            sa.Column('destination_latitude', sa.Float(), nullable=True),
            sa.Column('destination_longitude', sa.Float(), nullable=True),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('recipient_name', sa.String(100), nullable=True),
            sa.Column('recipient_phone', sa.String(20), nullable=True),
            sa.Column('weight', sa.Numeric(10, 2), nullable=True),
            sa.Column('cost', sa.Numeric(10, 2), nullable=True),
            sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column('delivered_at', sa.DateTime(), nullable=True),
            sa.Column('delivery_latitude', sa.Float(), nullable=True),
            sa.Column('delivery_longitude', sa.Float(), nullable=True),
        )
        op.create_index('idx_shipments_customer', 'shipments', ['customer_id'])
        op.create_index('idx_shipments_driver', 'shipments', ['driver_id'])
        op.create_index('idx_shipments_status', 'shipments', ['status'])

    if not table_exists('shipment_status_history'):
        op.create_table(
            'shipment_status_history',
            sa.Column('id', sa.String(), primary_key=True),
            sa.Column('shipment_id', sa.String(), sa.ForeignKey('shipments.id', ondelete='CASCADE'), nullable=False),
            sa.Column('status', sa.String(20), nullable=False),
            sa.Column('latitude', sa.Float(), nullable=True),
            sa.Column('longitude', sa.Float(), nullable=True),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('changed_by_id', sa.String(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index('idx_status_history_shipment', 'shipment_status_history', ['shipment_id'])

    if not table_exists('qr_scans'):
        op.create_table(
            'qr_scans',
            sa.Column('id', sa.String(), primary_key=True),
            sa.Column('shipment_id', sa.String(), sa.ForeignKey('shipments.id', ondelete='CASCADE'), nullable=False),
            sa.Column('driver_id', sa.String(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
            sa.Column('scan_type', sa.String(20), nullable=False),
            sa.Column('qr_data', sa.Text(), nullable=True),
            sa.Column('latitude', sa.Float(), nullable=False),
            sa.Column('longitude', sa.Float(), nullable=False),
            sa.Column('accuracy', sa.Float(), nullable=True),
            sa.Column('photo_url', sa.String(), nullable=True),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index('idx_qr_scans_shipment', 'qr_scans', ['shipment_id'])
        op.create_index('idx_qr_scans_driver', 'qr_scans', ['driver_id'])

    # 4. Complaints and notifications
    if not table_exists('complaints'):
        op.create_table(
            'complaints',
            sa.Column('id', sa.String(), primary_key=True),
            sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
            sa.Column('user_role', sa.String(20), nullable=False),
            sa.Column('shipment_id', sa.String(), sa.ForeignKey('shipments.id', ondelete='SET NULL'), nullable=True),
            sa.Column('title', sa.String(200), nullable=False),
            sa.Column('description', sa.Text(), nullable=False),
            sa.Column('complaint_type', sa.String(50), nullable=False, server_default='general'),
            sa.Column('priority', sa.String(10), nullable=False, server_default='medium'),
            sa.Column('status', sa.String(20), nullable=False, server_default='open'),
            sa.Column('assigned_to_id', sa.String(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
            sa.Column('resolution_notes', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column('resolved_at', sa.DateTime(), nullable=True),
        )
        op.create_index('idx_complaints_status', 'complaints', ['status'])
        op.create_index('idx_complaints_user', 'complaints', ['user_id'])

    if not table_exists('notifications'):
        op.create_table(
            'notifications',
            sa.Column('id', sa.String(), primary_key=True),
            sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
            sa.Column('title', sa.String(200), nullable=False),
            sa.Column('message', sa.Text(), nullable=False),
            sa.Column('notification_type', sa.String(30), nullable=False, server_default='general'),
            sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index('idx_notifications_user_read', 'notifications', ['user_id', 'is_read'])


def downgrade():
    for table in (
        'notifications',
        'complaints',
        'qr_scans',
        'shipment_status_history',
        'shipments',
        'driver_locations',
        'user_sessions',
        'users',
    ):
        if table_exists(table):
            op.drop_table(table)
