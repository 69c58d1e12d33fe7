"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17 00:00:00.000000+00:00

"""
from alembic import op
import sqlalchemy as sa
from relay_indexer.database.types import EvmAddressType
from relay_indexer.database.types import EvmHashType
from relay_indexer.database.types import TokenAmountType

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    ]


def _event_log_columns():
    return [
        sa.Column('tx_hash', EvmHashType(), nullable=False),
        sa.Column('log_index', sa.Integer(), nullable=False),
        sa.Column('block_number', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.Integer(), nullable=False),
    ]


def _event_log_indexes(table: str) -> None:
    op.create_index(op.f(f'ix_{table}_block_number'), table, ['block_number'], unique=False)
    op.create_index(op.f(f'ix_{table}_timestamp'), table, ['timestamp'], unique=False)


def upgrade() -> None:
    # Cursor and failure ledger
    op.create_table('indexer_state',
    sa.Column('job_name', sa.String(length=64), nullable=False),
    sa.Column('last_block', sa.Integer(), nullable=True),
    sa.Column('last_run_at', sa.DateTime(timezone=True), nullable=True),
    *_timestamps(),
    sa.PrimaryKeyConstraint('job_name')
    )

    op.create_table('indexer_failed_events',
    sa.Column('job_name', sa.String(length=64), nullable=False),
    sa.Column('tx_hash', EvmHashType(), nullable=False),
    sa.Column('log_index', sa.Integer(), nullable=False),
    sa.Column('block_number', sa.Integer(), nullable=False),
    sa.Column('event_name', sa.String(length=128), nullable=False),
    sa.Column('error', sa.Text(), nullable=True),
    sa.Column('attempts', sa.Integer(), nullable=False),
    sa.Column('resolved', sa.Boolean(), nullable=False),
    *_timestamps(),
    sa.PrimaryKeyConstraint('job_name', 'tx_hash', 'log_index')
    )
    op.create_index(op.f('ix_indexer_failed_events_block_number'), 'indexer_failed_events', ['block_number'], unique=False)
    op.create_index(op.f('ix_indexer_failed_events_resolved'), 'indexer_failed_events', ['resolved'], unique=False)

    # Identity registry
    op.create_table('agents',
    sa.Column('agent_id', sa.String(length=78), nullable=False),
    sa.Column('owner_address', EvmAddressType(), nullable=True),
    sa.Column('agent_uri', sa.Text(), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('registered_at', sa.Integer(), nullable=True),
    sa.Column('registration_tx_hash', EvmHashType(), nullable=True),
    sa.Column('registration_block', sa.Integer(), nullable=True),
    sa.Column('last_event_block', sa.Integer(), nullable=False),
    sa.Column('last_log_index', sa.Integer(), nullable=False),
    *_timestamps(),
    sa.PrimaryKeyConstraint('agent_id')
    )
    op.create_index(op.f('ix_agents_owner_address'), 'agents', ['owner_address'], unique=False)

    # Reputation registry
    op.create_table('feedback_events',
    *_event_log_columns(),
    sa.Column('subject_address', EvmAddressType(), nullable=False),
    sa.Column('submitter_address', EvmAddressType(), nullable=False),
    sa.Column('tag', sa.String(length=128), nullable=False),
    sa.Column('score', sa.Integer(), nullable=False),
    sa.Column('comment', sa.Text(), nullable=True),
    sa.Column('is_revoked', sa.Boolean(), nullable=False),
    sa.Column('revoked_tx_hash', EvmHashType(), nullable=True),
    *_timestamps(),
    sa.PrimaryKeyConstraint('tx_hash', 'log_index')
    )
    _event_log_indexes('feedback_events')
    op.create_index(op.f('ix_feedback_events_subject_address'), 'feedback_events', ['subject_address'], unique=False)
    op.create_index(op.f('ix_feedback_events_submitter_address'), 'feedback_events', ['submitter_address'], unique=False)
    op.create_index('idx_feedback_subject_tag', 'feedback_events', ['subject_address', 'tag'], unique=False)

    op.create_table('agent_reputation',
    sa.Column('agent_address', EvmAddressType(), nullable=False),
    sa.Column('tag', sa.String(length=128), nullable=False),
    sa.Column('reputation_score', sa.Integer(), nullable=False),
    sa.Column('feedback_count', sa.Integer(), nullable=False),
    sa.Column('successful_transactions', sa.Integer(), nullable=False),
    sa.Column('failed_transactions', sa.Integer(), nullable=False),
    sa.Column('success_rate', sa.Float(), nullable=False),
    sa.Column('last_calculated', sa.DateTime(timezone=True), nullable=True),
    *_timestamps(),
    sa.PrimaryKeyConstraint('agent_address', 'tag')
    )

    # Escrow sessions
    op.create_table('escrow_sessions',
    sa.Column('session_id', sa.String(length=78), nullable=False),
    sa.Column('owner_address', EvmAddressType(), nullable=True),
    sa.Column('escrow_agent', EvmAddressType(), nullable=True),
    sa.Column('max_spend', TokenAmountType(), nullable=False),
    sa.Column('expiry', sa.Integer(), nullable=True),
    sa.Column('deposited', TokenAmountType(), nullable=False),
    sa.Column('released', TokenAmountType(), nullable=False),
    sa.Column('refunded', TokenAmountType(), nullable=False),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('created_tx_hash', EvmHashType(), nullable=True),
    sa.Column('created_block', sa.Integer(), nullable=True),
    sa.Column('timestamp', sa.Integer(), nullable=True),
    sa.Column('closed_at', sa.Integer(), nullable=True),
    sa.Column('closed_tx_hash', EvmHashType(), nullable=True),
    sa.Column('closed_block', sa.Integer(), nullable=True),
    *_timestamps(),
    sa.PrimaryKeyConstraint('session_id')
    )
    op.create_index(op.f('ix_escrow_sessions_owner_address'), 'escrow_sessions', ['owner_address'], unique=False)
    op.create_index(op.f('ix_escrow_sessions_is_active'), 'escrow_sessions', ['is_active'], unique=False)

    op.create_table('escrow_session_events',
    *_event_log_columns(),
    sa.Column('session_id', sa.String(length=78), nullable=False),
    sa.Column('event_type', sa.Enum('DEPOSIT', 'RELEASE', 'REFUND', 'CLOSE', 'AUTHORIZE', 'REVOKE',
                                    name='sessioneventtype', native_enum=False), nullable=False),
    sa.Column('actor_address', EvmAddressType(), nullable=True),
    sa.Column('amount', TokenAmountType(), nullable=True),
    sa.Column('execution_id', EvmHashType(), nullable=True),
    *_timestamps(),
    sa.PrimaryKeyConstraint('tx_hash', 'log_index')
    )
    _event_log_indexes('escrow_session_events')
    op.create_index(op.f('ix_escrow_session_events_session_id'), 'escrow_session_events', ['session_id'], unique=False)
    op.create_index(op.f('ix_escrow_session_events_event_type'), 'escrow_session_events', ['event_type'], unique=False)

    op.create_table('escrow_session_agents',
    sa.Column('session_id', sa.String(length=78), nullable=False),
    sa.Column('agent_address', EvmAddressType(), nullable=False),
    sa.Column('is_authorized', sa.Boolean(), nullable=False),
    sa.Column('authorized_at', sa.Integer(), nullable=True),
    sa.Column('auth_tx_hash', EvmHashType(), nullable=True),
    sa.Column('auth_block', sa.Integer(), nullable=True),
    sa.Column('revoked_at', sa.Integer(), nullable=True),
    *_timestamps(),
    sa.PrimaryKeyConstraint('session_id', 'agent_address')
    )

    op.create_table('agent_earnings',
    sa.Column('agent_address', EvmAddressType(), nullable=False),
    sa.Column('total_earned', TokenAmountType(), nullable=False),
    sa.Column('payment_count', sa.Integer(), nullable=False),
    *_timestamps(),
    sa.PrimaryKeyConstraint('agent_address')
    )

    # Payments
    op.create_table('payment_events',
    *_event_log_columns(),
    sa.Column('token_address', EvmAddressType(), nullable=False),
    sa.Column('from_address', EvmAddressType(), nullable=False),
    sa.Column('to_address', EvmAddressType(), nullable=False),
    sa.Column('amount', TokenAmountType(), nullable=False),
    sa.Column('direction', sa.Enum('INCOMING', 'OUTGOING', 'EXTERNAL',
                                   name='transferdirection', native_enum=False), nullable=False),
    *_timestamps(),
    sa.PrimaryKeyConstraint('tx_hash', 'log_index')
    )
    _event_log_indexes('payment_events')
    op.create_index(op.f('ix_payment_events_from_address'), 'payment_events', ['from_address'], unique=False)
    op.create_index(op.f('ix_payment_events_to_address'), 'payment_events', ['to_address'], unique=False)

    op.create_table('payments',
    sa.Column('payment_id', sa.String(length=128), nullable=False),
    sa.Column('tx_hash', EvmHashType(), nullable=True),
    sa.Column('from_address', EvmAddressType(), nullable=True),
    sa.Column('to_address', EvmAddressType(), nullable=True),
    sa.Column('amount', TokenAmountType(), nullable=False),
    sa.Column('token_address', EvmAddressType(), nullable=True),
    sa.Column('status', sa.Enum('VERIFIED', 'SETTLED', 'FAILED',
                                name='paymentstatus', native_enum=False), nullable=False),
    sa.Column('block_number', sa.Integer(), nullable=False),
    sa.Column('timestamp', sa.Integer(), nullable=True),
    *_timestamps(),
    sa.PrimaryKeyConstraint('payment_id')
    )
    op.create_index(op.f('ix_payments_tx_hash'), 'payments', ['tx_hash'], unique=False)
    op.create_index(op.f('ix_payments_from_address'), 'payments', ['from_address'], unique=False)
    op.create_index(op.f('ix_payments_to_address'), 'payments', ['to_address'], unique=False)
    op.create_index(op.f('ix_payments_status'), 'payments', ['status'], unique=False)

    # Perpetual trades
    op.create_table('trades',
    sa.Column('position_key', EvmHashType(), nullable=False),
    sa.Column('user_address', EvmAddressType(), nullable=True),
    sa.Column('pair', sa.String(length=64), nullable=True),
    sa.Column('side', sa.Enum('LONG', 'SHORT', name='tradeside', native_enum=False), nullable=True),
    sa.Column('leverage', sa.Integer(), nullable=True),
    sa.Column('size_usd', TokenAmountType(), nullable=True),
    sa.Column('entry_price', TokenAmountType(), nullable=True),
    sa.Column('exit_price', TokenAmountType(), nullable=True),
    sa.Column('liquidation_price', TokenAmountType(), nullable=True),
    sa.Column('pnl_usd', TokenAmountType(), nullable=True),
    sa.Column('status', sa.Enum('OPEN', 'CLOSED', 'LIQUIDATED',
                                name='tradestatus', native_enum=False), nullable=False),
    sa.Column('tx_hash_open', EvmHashType(), nullable=True),
    sa.Column('tx_hash_close', EvmHashType(), nullable=True),
    sa.Column('opened_at', sa.Integer(), nullable=True),
    sa.Column('closed_at', sa.Integer(), nullable=True),
    *_timestamps(),
    sa.PrimaryKeyConstraint('position_key')
    )
    op.create_index(op.f('ix_trades_user_address'), 'trades', ['user_address'], unique=False)
    op.create_index(op.f('ix_trades_pair'), 'trades', ['pair'], unique=False)
    op.create_index(op.f('ix_trades_status'), 'trades', ['status'], unique=False)

    op.create_table('position_events',
    *_event_log_columns(),
    sa.Column('position_key', EvmHashType(), nullable=False),
    sa.Column('event_type', sa.Enum('OPEN', 'CLOSE', 'LIQUIDATE',
                                    name='positioneventtype', native_enum=False), nullable=False),
    *_timestamps(),
    sa.PrimaryKeyConstraint('tx_hash', 'log_index')
    )
    _event_log_indexes('position_events')
    op.create_index(op.f('ix_position_events_position_key'), 'position_events', ['position_key'], unique=False)

    # Handoff signing
    op.create_table('pending_transactions',
    sa.Column('transaction_id', sa.String(length=64), nullable=False),
    sa.Column('chain_id', sa.Integer(), nullable=False),
    sa.Column('tool', sa.String(length=64), nullable=True),
    sa.Column('status', sa.Enum('PENDING', 'SIGNED', 'BROADCAST', 'CONFIRMED', 'FAILED', 'EXPIRED',
                                name='pendingtxstatus', native_enum=False), nullable=False),
    sa.Column('session_id', sa.String(length=78), nullable=True),
    sa.Column('agent_id', sa.String(length=78), nullable=True),
    sa.Column('tx_hash', EvmHashType(), nullable=True),
    sa.Column('block_number', sa.Integer(), nullable=True),
    sa.Column('block_hash', EvmHashType(), nullable=True),
    sa.Column('gas_used', sa.BigInteger(), nullable=True),
    sa.Column('error_message', sa.Text(), nullable=True),
    sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
    *_timestamps(),
    sa.PrimaryKeyConstraint('transaction_id')
    )
    op.create_index(op.f('ix_pending_transactions_status'), 'pending_transactions', ['status'], unique=False)
    op.create_index(op.f('ix_pending_transactions_tx_hash'), 'pending_transactions', ['tx_hash'], unique=False)
    op.create_index(op.f('ix_pending_transactions_expires_at'), 'pending_transactions', ['expires_at'], unique=False)

    op.create_table('pending_tx_state_history',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('transaction_id', sa.String(length=64), nullable=False),
    sa.Column('status', sa.Enum('PENDING', 'SIGNED', 'BROADCAST', 'CONFIRMED', 'FAILED', 'EXPIRED',
                                name='pendingtxstatus', native_enum=False), nullable=False),
    sa.Column('details', sa.JSON(), nullable=True),
    *_timestamps(),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_pending_tx_state_history_transaction_id'), 'pending_tx_state_history', ['transaction_id'], unique=False)

    op.create_table('on_chain_transactions',
    sa.Column('tx_hash', EvmHashType(), nullable=False),
    sa.Column('chain_id', sa.Integer(), nullable=False),
    sa.Column('block_number', sa.Integer(), nullable=False),
    sa.Column('block_hash', EvmHashType(), nullable=True),
    sa.Column('from_address', EvmAddressType(), nullable=True),
    sa.Column('to_address', EvmAddressType(), nullable=True),
    sa.Column('gas_used', sa.BigInteger(), nullable=True),
    sa.Column('gas_price', sa.BigInteger(), nullable=True),
    sa.Column('status', sa.Enum('SUCCESS', 'FAILED', name='onchaintxstatus', native_enum=False), nullable=False),
    sa.Column('timestamp', sa.Integer(), nullable=True),
    sa.Column('tool', sa.String(length=64), nullable=True),
    sa.Column('session_id', sa.String(length=78), nullable=True),
    sa.Column('agent_id', sa.String(length=78), nullable=True),
    sa.Column('pending_tx_id', sa.String(length=64), nullable=True),
    *_timestamps(),
    sa.PrimaryKeyConstraint('tx_hash')
    )
    op.create_index(op.f('ix_on_chain_transactions_block_number'), 'on_chain_transactions', ['block_number'], unique=False)
    op.create_index(op.f('ix_on_chain_transactions_pending_tx_id'), 'on_chain_transactions', ['pending_tx_id'], unique=False)


def downgrade() -> None:
    for table in (
        'on_chain_transactions',
        'pending_tx_state_history',
        'pending_transactions',
        'position_events',
        'trades',
        'payments',
        'payment_events',
        'agent_earnings',
        'escrow_session_agents',
        'escrow_session_events',
        'escrow_sessions',
        'agent_reputation',
        'feedback_events',
        'agents',
        'indexer_failed_events',
        'indexer_state',
    ):
        op.drop_table(table)
