"""create mining accounts, sessions, servers and upgrades

Revision ID: 4f1c2a9b7d31
Revises:
Create Date: 2026-10-19 10:02:41.318250

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4f1c2a9b7d31'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'mining_accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('telegram_id', sa.BigInteger(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=True),
        sa.Column('first_name', sa.String(length=128), nullable=True),
        sa.Column('token_balance', sa.Numeric(24, 8), nullable=False),
        sa.Column('usdt_balance', sa.Numeric(24, 8), nullable=False),
        sa.Column('ton_balance', sa.Numeric(24, 8), nullable=False),
        sa.Column('mining_power', sa.Numeric(10, 2), nullable=False),
        sa.Column('mining_duration_hours', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('telegram_id'),
    )

    op.create_table(
        'reward_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=10), nullable=False),
        sa.Column('change_type', sa.String(length=60), nullable=False),
        sa.Column('change_amount', sa.Numeric(24, 8), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['account_id'], ['mining_accounts.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_reward_history_account_id', 'reward_history', ['account_id'])

    op.create_table(
        'mining_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('active_account_id', sa.Integer(), nullable=True),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('duration_hours', sa.Integer(), nullable=False),
        sa.Column('mining_power', sa.Numeric(10, 2), nullable=False),
        sa.Column('tokens_per_hour', sa.Numeric(24, 8), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('total_mined', sa.Numeric(24, 8), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['account_id'], ['mining_accounts.id']),
        sa.PrimaryKeyConstraint('id'),
        # 每个账户最多一个进行中的会话
        sa.UniqueConstraint('active_account_id'),
    )
    op.create_index('ix_mining_sessions_account_id', 'mining_sessions', ['account_id'])

    op.create_table(
        'user_servers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('server_tier', sa.String(length=32), nullable=False),
        sa.Column('server_name', sa.String(length=64), nullable=False),
        sa.Column('hash_rate', sa.String(length=32), nullable=True),
        sa.Column('daily_bolt_yield', sa.Numeric(24, 8), nullable=False),
        sa.Column('daily_usdt_yield', sa.Numeric(24, 8), nullable=False),
        sa.Column('daily_ton_yield', sa.Numeric(24, 8), nullable=False),
        sa.Column('purchased_at', sa.DateTime(), nullable=False),
        sa.Column('last_claim_at', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['account_id'], ['mining_accounts.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_servers_account_id', 'user_servers', ['account_id'])
    op.create_index('ix_user_servers_is_active', 'user_servers', ['is_active'])

    op.create_table(
        'server_inventory',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('server_id', sa.String(length=64), nullable=False),
        sa.Column('server_name', sa.String(length=64), nullable=False),
        sa.Column('server_tier', sa.String(length=32), nullable=False),
        sa.Column('hash_rate', sa.String(length=32), nullable=True),
        sa.Column('daily_bolt_yield', sa.Numeric(24, 8), nullable=False),
        sa.Column('daily_usdt_yield', sa.Numeric(24, 8), nullable=False),
        sa.Column('daily_ton_yield', sa.Numeric(24, 8), nullable=False),
        sa.Column('total_stock', sa.Integer(), nullable=False),
        sa.Column('sold_count', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('server_id'),
    )

    op.create_table(
        'distribution_config',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('is_task_enabled', sa.Boolean(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'mining_upgrades',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('upgrade_type', sa.String(length=20), nullable=False),
        sa.Column('previous_level', sa.Numeric(10, 2), nullable=False),
        sa.Column('upgrade_level', sa.Numeric(10, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['account_id'], ['mining_accounts.id']),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade():
    op.drop_table('mining_upgrades')
    op.drop_table('distribution_config')
    op.drop_table('server_inventory')
    op.drop_index('ix_user_servers_is_active', table_name='user_servers')
    op.drop_index('ix_user_servers_account_id', table_name='user_servers')
    op.drop_table('user_servers')
    op.drop_index('ix_mining_sessions_account_id', table_name='mining_sessions')
    op.drop_table('mining_sessions')
    op.drop_index('ix_reward_history_account_id', table_name='reward_history')
    op.drop_table('reward_history')
    op.drop_table('mining_accounts')
