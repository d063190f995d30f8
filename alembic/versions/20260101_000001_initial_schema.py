"""Initial schema: users, wallets, staking, vouchers, referrals

Revision ID: 20260101_000001
Revises: 
Create Date: 2026-01-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20260101_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(18, 8)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('username', sa.String(255), nullable=True),
        sa.Column('image', sa.String(1024), nullable=True),
        sa.Column('invite_code', sa.String(32), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='user'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_username', 'users', ['username'])
    op.create_index('ix_users_invite_code', 'users', ['invite_code'], unique=True)

    op.create_table(
        'user_balances',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('balance', MONEY, nullable=False, server_default='0'),
        sa.Column('on_staking', MONEY, nullable=False, server_default='0'),
        sa.Column('daily_earning', MONEY, nullable=False, server_default='0'),
        sa.Column('latest_earning', MONEY, nullable=False, server_default='0'),
        sa.Column('team_earning', MONEY, nullable=False, server_default='0'),
        sa.Column('max_earn', MONEY, nullable=False, server_default='0'),
        sa.Column('missed_earnings', MONEY, nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('balance >= 0', name='ck_user_balances_balance_non_negative'),
        sa.CheckConstraint('on_staking >= 0', name='ck_user_balances_on_staking_non_negative'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_user_balances_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_user_balances'),
        sa.UniqueConstraint('user_id', name='uq_user_balances_user_id'),
    )

    op.create_table(
        'staking_entries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('package_id', sa.Integer(), nullable=False),
        sa.Column('package_name', sa.String(100), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('currency', sa.String(10), nullable=False, server_default='USDT'),
        sa.Column('daily_roi', sa.Numeric(10, 4), nullable=False),
        sa.Column('cap', sa.Numeric(6, 2), nullable=False),
        sa.Column('max_earning', MONEY, nullable=False),
        sa.Column('total_earned', MONEY, nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('unstake_requested_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cooldown_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('amount > 0', name='ck_staking_entries_amount_positive'),
        sa.CheckConstraint('total_earned >= 0', name='ck_staking_entries_total_earned_non_negative'),
        sa.CheckConstraint(
            'max_earning = 0 OR total_earned <= max_earning',
            name='ck_staking_entries_total_earned_within_cap',
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_staking_entries_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_staking_entries'),
    )
    op.create_index('ix_staking_entries_user_id', 'staking_entries', ['user_id'])
    op.create_index('ix_staking_entries_status', 'staking_entries', ['status'])
    op.create_index('ix_staking_entries_created_at', 'staking_entries', ['created_at'])
    op.create_index('idx_staking_entries_user_status', 'staking_entries', ['user_id', 'status'])

    op.create_table(
        'vouchers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(32), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('value', MONEY, nullable=False),
        sa.Column('currency', sa.String(10), nullable=False, server_default='USDT'),
        sa.Column('type', sa.String(20), nullable=False, server_default='package'),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('badge', sa.String(50), nullable=True),
        sa.Column('badge_color', sa.String(20), nullable=False, server_default='orange'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('link_text', sa.String(255), nullable=True),
        sa.Column('link_href', sa.String(1024), nullable=True),
        sa.Column('package_id', sa.Integer(), nullable=True),
        sa.Column('package_name', sa.String(100), nullable=True),
        sa.Column('roi_validity_days', sa.Integer(), nullable=True),
        sa.Column('roi_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('affects_max_cap', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('requires_real_package', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_promotional', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('used_on_package_id', sa.Integer(), nullable=True),
        sa.Column('applied_to_stake_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_vouchers_user_id_users', ondelete='SET NULL'),
        sa.ForeignKeyConstraint(
            ['applied_to_stake_id'], ['staking_entries.id'],
            name='fk_vouchers_applied_to_stake_id_staking_entries', ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_vouchers'),
        sa.UniqueConstraint('applied_to_stake_id', name='uq_vouchers_applied_to_stake_id'),
    )
    op.create_index('ix_vouchers_code', 'vouchers', ['code'], unique=True)
    op.create_index('ix_vouchers_user_id', 'vouchers', ['user_id'])
    op.create_index('ix_vouchers_status', 'vouchers', ['status'])
    op.create_index('ix_vouchers_expires_at', 'vouchers', ['expires_at'])
    op.create_index('idx_vouchers_user_status', 'vouchers', ['user_id', 'status'])

    op.create_table(
        'invited_members',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('sponsor_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(255), nullable=True),
        sa.Column('last_name', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['sponsor_id'], ['users.id'], name='fk_invited_members_sponsor_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_invited_members_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_invited_members'),
        sa.UniqueConstraint('user_id', name='uq_invited_members_user_id'),
    )
    op.create_index('ix_invited_members_sponsor_id', 'invited_members', ['sponsor_id'])

    op.create_table(
        'transaction_records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='completed'),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('currency', sa.String(10), nullable=False, server_default='USDT'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('request_id', sa.String(64), nullable=True),
        sa.Column('transaction_hash', sa.String(128), nullable=True),
        sa.Column('from_address', sa.String(255), nullable=True),
        sa.Column('to_address', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_transaction_records_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_transaction_records'),
        sa.UniqueConstraint('request_id', name='uq_transaction_records_request_id'),
        sa.UniqueConstraint('transaction_hash', name='uq_transaction_records_transaction_hash'),
    )
    op.create_index('ix_transaction_records_user_id', 'transaction_records', ['user_id'])
    op.create_index('ix_transaction_records_created_at', 'transaction_records', ['created_at'])
    op.create_index('idx_transaction_records_user_type', 'transaction_records', ['user_id', 'type'])

    op.create_table(
        'team_earning_records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('source_user_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_team_earning_records_user_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(
            ['source_user_id'], ['users.id'],
            name='fk_team_earning_records_source_user_id_users', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_team_earning_records'),
    )
    op.create_index('ix_team_earning_records_user_id', 'team_earning_records', ['user_id'])

    op.create_table(
        'promotion_registrations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('promotion_type', sa.String(50), nullable=False),
        sa.Column('registered_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_promotion_registrations_user_id_users', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_promotion_registrations'),
        sa.UniqueConstraint('user_id', name='uq_promotion_registrations_user_id'),
    )


def downgrade() -> None:
    op.drop_table('promotion_registrations')
    op.drop_index('ix_team_earning_records_user_id', table_name='team_earning_records')
    op.drop_table('team_earning_records')
    op.drop_index('idx_transaction_records_user_type', table_name='transaction_records')
    op.drop_index('ix_transaction_records_created_at', table_name='transaction_records')
    op.drop_index('ix_transaction_records_user_id', table_name='transaction_records')
    op.drop_table('transaction_records')
    op.drop_index('ix_invited_members_sponsor_id', table_name='invited_members')
    op.drop_table('invited_members')
    op.drop_index('idx_vouchers_user_status', table_name='vouchers')
    op.drop_index('ix_vouchers_expires_at', table_name='vouchers')
    op.drop_index('ix_vouchers_status', table_name='vouchers')
    op.drop_index('ix_vouchers_user_id', table_name='vouchers')
    op.drop_index('ix_vouchers_code', table_name='vouchers')
    op.drop_table('vouchers')
    op.drop_index('idx_staking_entries_user_status', table_name='staking_entries')
    op.drop_index('ix_staking_entries_created_at', table_name='staking_entries')
    op.drop_index('ix_staking_entries_status', table_name='staking_entries')
    op.drop_index('ix_staking_entries_user_id', table_name='staking_entries')
    op.drop_table('staking_entries')
    op.drop_table('user_balances')
    op.drop_index('ix_users_invite_code', table_name='users')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
