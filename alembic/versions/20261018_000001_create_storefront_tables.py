"""Create storefront profile, referral and payment tables.

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261018_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


DEFAULT_REWARD_CONFIG = {
    'level1': '200.00',
    'level2': '15.00',
    'level3': '11.00',
    'level4': '9.00',
    'level5': '7.00',
    'level6': '5.00',
    'level7': '3.00',
}


def upgrade() -> None:
    """Create tables and seed the default referral reward table."""

    op.create_table(
        'user_profiles',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('referral_code', sa.String(20), nullable=False),
        sa.Column('registration_number', sa.String(20), nullable=True),
        sa.Column('referred_by', sa.Uuid(), nullable=True, comment='Direct referrer profile, set once at registration'),
        sa.Column('available_balance', sa.DECIMAL(10, 2), nullable=False, server_default='0'),
        sa.Column('total_earnings', sa.DECIMAL(10, 2), nullable=False, server_default='0'),
        sa.Column('withdrawn_amount', sa.DECIMAL(10, 2), nullable=False, server_default='0'),
        sa.Column('subscription_status', sa.String(20), nullable=False, server_default='inactive'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['referred_by'], ['user_profiles.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('registration_number'),
        sa.CheckConstraint('available_balance >= 0', name='check_profile_available_balance_non_negative'),
        sa.CheckConstraint('total_earnings >= 0', name='check_profile_total_earnings_non_negative'),
        sa.CheckConstraint('withdrawn_amount >= 0', name='check_profile_withdrawn_amount_non_negative'),
        sa.CheckConstraint("subscription_status IN ('active', 'inactive')", name='check_profile_subscription_status'),
    )
    op.create_index('ix_user_profiles_user_id', 'user_profiles', ['user_id'], unique=True)
    op.create_index('ix_user_profiles_referral_code', 'user_profiles', ['referral_code'], unique=True)
    op.create_index('ix_user_profiles_referred_by', 'user_profiles', ['referred_by'])
    op.create_index('ix_user_profiles_subscription_status', 'user_profiles', ['subscription_status'])

    op.create_table(
        'referral_commissions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('referrer_id', sa.Uuid(), nullable=False),
        sa.Column('referee_id', sa.Uuid(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('commission_amount', sa.DECIMAL(10, 2), nullable=False),
        sa.Column('trigger_type', sa.String(50), nullable=False, server_default='subscription_activation'),
        sa.Column('trigger_user_id', sa.Uuid(), nullable=False, comment='Auth user whose activation produced the reward'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['referrer_id'], ['user_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['referee_id'], ['user_profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('referee_id', 'trigger_user_id', 'level', name='uq_referral_commissions_referee_trigger_level'),
        sa.CheckConstraint('level >= 1 AND level <= 7', name='check_referral_commission_level_range'),
        sa.CheckConstraint('commission_amount >= 0', name='check_referral_commission_amount_non_negative'),
    )
    op.create_index('ix_referral_commissions_referrer_id', 'referral_commissions', ['referrer_id'])
    op.create_index('ix_referral_commissions_referee_id', 'referral_commissions', ['referee_id'])
    op.create_index('ix_referral_commissions_trigger_type', 'referral_commissions', ['trigger_type'])
    op.create_index('ix_referral_commissions_trigger_user_id', 'referral_commissions', ['trigger_user_id'])
    op.create_index('ix_referral_commissions_created_at', 'referral_commissions', ['created_at'])

    system_settings = op.create_table(
        'system_settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('value', sa.JSON(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_system_settings_key', 'system_settings', ['key'], unique=True)

    op.create_table(
        'subscription_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.DECIMAL(10, 2), nullable=False, server_default='99.00'),
        sa.Column('upi_transaction_id', sa.String(100), nullable=False),
        sa.Column('payment_proof_url', sa.Text(), nullable=True),
        sa.Column('payment_proof_filename', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('processed_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name='check_subscription_request_status'),
        sa.CheckConstraint('amount > 0', name='check_subscription_request_amount_positive'),
    )
    op.create_index('ix_subscription_requests_user_id', 'subscription_requests', ['user_id'])
    op.create_index('ix_subscription_requests_status', 'subscription_requests', ['status'])

    op.create_table(
        'withdrawal_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.DECIMAL(10, 2), nullable=False),
        sa.Column('upi_id', sa.String(100), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('requested_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('processed_by', sa.Uuid(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name='check_withdrawal_request_status'),
        sa.CheckConstraint('amount > 0', name='check_withdrawal_request_amount_positive'),
    )
    op.create_index('ix_withdrawal_requests_user_id', 'withdrawal_requests', ['user_id'])
    op.create_index('ix_withdrawal_requests_status', 'withdrawal_requests', ['status'])

    # Seed reward table
    op.bulk_insert(
        system_settings,
        [
            {
                'key': 'referral_reward_config',
                'value': DEFAULT_REWARD_CONFIG,
                'description': '7-level fixed reward structure amounts in rupees',
            }
        ],
    )


def downgrade() -> None:
    """Drop storefront tables."""
    op.drop_index('ix_withdrawal_requests_status', table_name='withdrawal_requests')
    op.drop_index('ix_withdrawal_requests_user_id', table_name='withdrawal_requests')
    op.drop_table('withdrawal_requests')

    op.drop_index('ix_subscription_requests_status', table_name='subscription_requests')
    op.drop_index('ix_subscription_requests_user_id', table_name='subscription_requests')
    op.drop_table('subscription_requests')

    op.drop_index('ix_system_settings_key', table_name='system_settings')
    op.drop_table('system_settings')

    op.drop_index('ix_referral_commissions_created_at', table_name='referral_commissions')
    op.drop_index('ix_referral_commissions_trigger_user_id', table_name='referral_commissions')
    op.drop_index('ix_referral_commissions_trigger_type', table_name='referral_commissions')
    op.drop_index('ix_referral_commissions_referee_id', table_name='referral_commissions')
    op.drop_index('ix_referral_commissions_referrer_id', table_name='referral_commissions')
    op.drop_table('referral_commissions')

    op.drop_index('ix_user_profiles_subscription_status', table_name='user_profiles')
    op.drop_index('ix_user_profiles_referred_by', table_name='user_profiles')
    op.drop_index('ix_user_profiles_referral_code', table_name='user_profiles')
    op.drop_index('ix_user_profiles_user_id', table_name='user_profiles')
    op.drop_table('user_profiles')
