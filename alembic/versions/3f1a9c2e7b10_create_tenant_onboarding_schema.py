"""create_tenant_onboarding_schema

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-19 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


payment_provider_enum = sa.Enum('NONE', 'STRIPE', 'SQUARE', name='paymentprovider')
payment_provider_status_enum = sa.Enum('NONE', 'ONBOARDING', 'ACTIVE', 'DISABLED', name='paymentproviderstatus')
onboarding_step_enum = sa.Enum('PROVISIONING', 'PAYMENT', 'PAYMENT_COMPLETE', 'COMPLETED', name='onboardingstep')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create tenant, user, onboarding and seed data tables."""
    op.create_table(
        'tenant',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('domain', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('base_currency', sa.String(length=3), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('payment_provider', payment_provider_enum, nullable=False),
        sa.Column('payment_provider_status', payment_provider_status_enum, nullable=False),
        sa.Column('onboarding_step', onboarding_step_enum, nullable=False),
        sa.Column('onboarding_completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('stripe_connect_account_id', sa.String(), nullable=True),
        sa.Column('stripe_charges_enabled', sa.Boolean(), nullable=False),
        sa.Column('stripe_payouts_enabled', sa.Boolean(), nullable=False),
        sa.Column('stripe_details_submitted', sa.Boolean(), nullable=False),
        sa.Column('stripe_last_event_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('square_access_token', sa.Text(), nullable=True),
        sa.Column('square_refresh_token', sa.Text(), nullable=True),
        sa.Column('square_access_token_expiry', sa.DateTime(timezone=True), nullable=True),
        sa.Column('square_merchant_id', sa.String(), nullable=True),
        sa.Column('square_location_id', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_tenant_id', 'tenant', ['id'])
    op.create_index('ix_tenant_domain', 'tenant', ['domain'], unique=True)
    op.create_index('ix_tenant_email', 'tenant', ['email'], unique=True)
    op.create_index('ix_tenant_stripe_connect_account_id', 'tenant', ['stripe_connect_account_id'], unique=True)

    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('email_verified', sa.Boolean(), nullable=False),
        sa.Column('email_verified_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_user_id', 'user', ['id'])
    op.create_index('ix_user_email', 'user', ['email'], unique=True)

    op.create_table(
        'email_verification_token',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_email_verification_token_id', 'email_verification_token', ['id'])
    op.create_index('ix_email_verification_token_user_id', 'email_verification_token', ['user_id'])
    op.create_index('ix_email_verification_token_token', 'email_verification_token', ['token'], unique=True)

    op.create_table(
        'oauth_state',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_oauth_state_tenant_id', 'oauth_state', ['tenant_id'])

    op.create_table(
        'account',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('root_type', sa.String(), nullable=False),
        sa.Column('account_type', sa.String(), nullable=False),
        sa.Column('is_group', sa.Boolean(), nullable=False),
        sa.Column('parent_account_id', sa.Integer(), sa.ForeignKey('account.id'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'code', name='uq_account_tenant_code'),
    )
    op.create_index('ix_account_id', 'account', ['id'])
    op.create_index('ix_account_tenant_id', 'account', ['tenant_id'])

    op.create_table(
        'warehouse',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('default_receiving_location_id', sa.Integer(), nullable=True),
        sa.Column('default_picking_location_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'code', name='uq_warehouse_tenant_code'),
    )
    op.create_index('ix_warehouse_id', 'warehouse', ['id'])
    op.create_index('ix_warehouse_tenant_id', 'warehouse', ['tenant_id'])

    op.create_table(
        'location',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), sa.ForeignKey('warehouse.id', ondelete='CASCADE'), nullable=False),
        sa.Column('parent_id', sa.Integer(), sa.ForeignKey('location.id'), nullable=True),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('path', sa.String(), nullable=False),
        sa.Column('is_pickable', sa.Boolean(), nullable=False),
        sa.Column('is_putaway', sa.Boolean(), nullable=False),
        sa.Column('is_staging', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'warehouse_id', 'code', name='uq_location_tenant_warehouse_code'),
    )
    op.create_index('ix_location_id', 'location', ['id'])
    op.create_index('ix_location_tenant_id', 'location', ['tenant_id'])

    op.create_table(
        'uom',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(), nullable=False, unique=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_uom_id', 'uom', ['id'])

    op.create_table(
        'doc_type',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('module', sa.String(), nullable=False),
        sa.Column('is_single', sa.Boolean(), nullable=False),
        sa.Column('is_child', sa.Boolean(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_doc_type_id', 'doc_type', ['id'])

    op.create_table(
        'doc_perm',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('doc_type_name', sa.String(), sa.ForeignKey('doc_type.name', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False),
        sa.Column('write', sa.Boolean(), nullable=False),
        sa.Column('create', sa.Boolean(), nullable=False),
        sa.Column('delete', sa.Boolean(), nullable=False),
        sa.Column('submit', sa.Boolean(), nullable=False),
        sa.Column('cancel', sa.Boolean(), nullable=False),
        sa.Column('amend', sa.Boolean(), nullable=False),
        sa.Column('report', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_doc_perm_doc_type_name', 'doc_perm', ['doc_type_name'])

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False),
        sa.Column('event_key', sa.String(), nullable=False, unique=True),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('doc_type', sa.String(), nullable=False),
        sa.Column('doc_name', sa.String(), nullable=False),
        sa.Column('meta', sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_audit_log_id', 'audit_log', ['id'])
    op.create_index('ix_audit_log_tenant_id', 'audit_log', ['tenant_id'])


def downgrade() -> None:
    """Drop all tables and enum types."""
    op.drop_table('audit_log')
    op.drop_table('doc_perm')
    op.drop_table('doc_type')
    op.drop_table('uom')
    op.drop_table('location')
    op.drop_table('warehouse')
    op.drop_table('account')
    op.drop_table('oauth_state')
    op.drop_table('email_verification_token')
    op.drop_table('user')
    op.drop_table('tenant')
    onboarding_step_enum.drop(op.get_bind(), checkfirst=True)
    payment_provider_status_enum.drop(op.get_bind(), checkfirst=True)
    payment_provider_enum.drop(op.get_bind(), checkfirst=True)
