"""Initial schema: pair registry aggregates, activity records, indexer bookkeeping

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17

This migration adds:
1. assets, pairs, registries and reference_rates (mutable aggregates)
2. activities, mints, burns and swaps (append-only records)
3. indexer_checkpoints and batch_runs
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _amount(name: str) -> sa.Column:
    # SQLite has no exact NUMERIC; amounts are kept as decimal strings there
    return sa.Column(name, sa.Numeric().with_variant(sa.String(), 'sqlite'), nullable=False)


def _pair_event_columns() -> list:
    return [
        sa.Column('id', sa.String(140), primary_key=True),
        sa.Column('transaction_id', sa.String(66), sa.ForeignKey('activities.id'), nullable=False),
        sa.Column('pair_id', sa.String(42), sa.ForeignKey('pairs.id'), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.Column('log_index', sa.BigInteger(), nullable=False),
        sa.Column('sender', sa.String(42), nullable=False),
        _amount('amount_usd'),
    ]


def upgrade() -> None:
    op.create_table(
        'assets',
        sa.Column('id', sa.String(42), primary_key=True, comment='Lowercase token address'),
        sa.Column('symbol', sa.String(64), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('decimals', sa.Integer(), nullable=False),
        _amount('trade_volume'),
        _amount('trade_volume_usd'),
        _amount('untracked_volume_usd'),
        sa.Column('tx_count', sa.BigInteger(), nullable=False),
        _amount('total_liquidity'),
        _amount('derived_ref'),
    )
    op.create_index('ix_assets_symbol', 'assets', ['symbol'])

    op.create_table(
        'pairs',
        sa.Column('id', sa.String(42), primary_key=True, comment='Lowercase pool address'),
        sa.Column('token0_id', sa.String(42), sa.ForeignKey('assets.id'), nullable=False),
        sa.Column('token1_id', sa.String(42), sa.ForeignKey('assets.id'), nullable=False),
        _amount('reserve0'),
        _amount('reserve1'),
        _amount('token0_price'),
        _amount('token1_price'),
        _amount('reserve_ref'),
        _amount('reserve_usd'),
        _amount('tracked_reserve_ref'),
        _amount('volume_token0'),
        _amount('volume_token1'),
        _amount('volume_usd'),
        _amount('untracked_volume_usd'),
        sa.Column('tx_count', sa.BigInteger(), nullable=False),
        sa.Column('created_at_timestamp', sa.BigInteger(), nullable=False),
        sa.Column('created_at_block_number', sa.BigInteger(), nullable=False),
    )
    op.create_index('ix_pairs_token0_id', 'pairs', ['token0_id'])
    op.create_index('ix_pairs_token1_id', 'pairs', ['token1_id'])
    op.create_index('ix_pairs_created_at_block_number', 'pairs', ['created_at_block_number'])

    op.create_table(
        'registries',
        sa.Column('id', sa.String(42), primary_key=True, comment='Registration-contract address'),
        sa.Column('pair_count', sa.Integer(), nullable=False),
        _amount('total_volume_ref'),
        _amount('total_volume_usd'),
        _amount('untracked_volume_usd'),
        _amount('total_liquidity_ref'),
        _amount('total_liquidity_usd'),
        sa.Column('tx_count', sa.BigInteger(), nullable=False),
    )

    op.create_table(
        'reference_rates',
        sa.Column('id', sa.String(8), primary_key=True),
        _amount('ref_price_usd'),
    )

    op.create_table(
        'activities',
        sa.Column('id', sa.String(66), primary_key=True, comment='Transaction hash'),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
    )
    op.create_index('ix_activities_block_number', 'activities', ['block_number'])

    op.create_table(
        'mints',
        *_pair_event_columns(),
        _amount('amount0'),
        _amount('amount1'),
    )
    op.create_table(
        'burns',
        *_pair_event_columns(),
        sa.Column('to', sa.String(42), nullable=False),
        _amount('amount0'),
        _amount('amount1'),
    )
    op.create_table(
        'swaps',
        *_pair_event_columns(),
        sa.Column('from', sa.String(42), nullable=False),
        sa.Column('to', sa.String(42), nullable=False),
        _amount('amount0_in'),
        _amount('amount1_in'),
        _amount('amount0_out'),
        _amount('amount1_out'),
    )
    for table in ('mints', 'burns', 'swaps'):
        op.create_index(f'ix_{table}_transaction_id', table, ['transaction_id'])
        op.create_index(f'ix_{table}_pair_id', table, ['pair_id'])

    op.create_table(
        'indexer_checkpoints',
        sa.Column('processor_name', sa.String(), primary_key=True),
        sa.Column('last_block_height', sa.BigInteger(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'batch_runs',
        sa.Column('run_id', sa.Uuid(), primary_key=True),
        sa.Column('processor_name', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('from_block', sa.BigInteger(), nullable=True),
        sa.Column('to_block', sa.BigInteger(), nullable=True),
        sa.Column('events_processed', sa.Integer(), nullable=False),
        sa.Column('events_skipped', sa.Integer(), nullable=False),
        sa.Column('error_message', sa.String(), nullable=True),
        sa.Column('metadata', sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_batch_runs_started_at', 'batch_runs', ['started_at'])


def downgrade() -> None:
    op.drop_index('ix_batch_runs_started_at', 'batch_runs')
    op.drop_table('batch_runs')
    op.drop_table('indexer_checkpoints')

    for table in ('swaps', 'burns', 'mints'):
        op.drop_index(f'ix_{table}_pair_id', table)
        op.drop_index(f'ix_{table}_transaction_id', table)
        op.drop_table(table)

    op.drop_index('ix_activities_block_number', 'activities')
    op.drop_table('activities')
    op.drop_table('reference_rates')
    op.drop_table('registries')

    op.drop_index('ix_pairs_created_at_block_number', 'pairs')
    op.drop_index('ix_pairs_token1_id', 'pairs')
    op.drop_index('ix_pairs_token0_id', 'pairs')
    op.drop_table('pairs')

    op.drop_index('ix_assets_symbol', 'assets')
    op.drop_table('assets')
