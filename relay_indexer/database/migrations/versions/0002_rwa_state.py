"""rwa_state

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-17 00:00:00.000000+00:00

"""
from alembic import op
import sqlalchemy as sa
from relay_indexer.database.types import EvmAddressType
from relay_indexer.database.types import EvmHashType

# revision identifiers, used by Alembic.
revision = '0002'
down_revision = '0001'
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    ]


def upgrade() -> None:
    # Written by the marketplace
    op.create_table('rwa_state_machines',
    sa.Column('rwa_id', sa.String(length=128), nullable=False),
    sa.Column('current_state', sa.String(length=32), nullable=False),
    *_timestamps(),
    sa.PrimaryKeyConstraint('rwa_id')
    )
    op.create_index(op.f('ix_rwa_state_machines_current_state'), 'rwa_state_machines', ['current_state'], unique=False)

    op.create_table('rwa_state_transitions',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('rwa_id', sa.String(length=128), nullable=False),
    sa.Column('from_state', sa.String(length=32), nullable=False),
    sa.Column('to_state', sa.String(length=32), nullable=False),
    sa.Column('agent_address', EvmAddressType(), nullable=True),
    sa.Column('agent_role', sa.String(length=64), nullable=True),
    sa.Column('payment_hash', EvmHashType(), nullable=True),
    sa.Column('proof', sa.JSON(), nullable=True),
    sa.Column('transitioned_at', sa.DateTime(timezone=True), nullable=False),
    *_timestamps(),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_rwa_state_transitions_rwa_id'), 'rwa_state_transitions', ['rwa_id'], unique=False)
    op.create_index(op.f('ix_rwa_state_transitions_transitioned_at'), 'rwa_state_transitions', ['transitioned_at'], unique=False)

    op.create_table('rwa_agent_assignments',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('rwa_id', sa.String(length=128), nullable=False),
    sa.Column('agent_address', EvmAddressType(), nullable=False),
    sa.Column('agent_role', sa.String(length=64), nullable=True),
    sa.Column('status', sa.Enum('ASSIGNED', 'COMPLETED', 'FAILED',
                                name='rwaassignmentstatus', native_enum=False), nullable=False),
    sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
    *_timestamps(),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_rwa_agent_assignments_rwa_id'), 'rwa_agent_assignments', ['rwa_id'], unique=False)
    op.create_index(op.f('ix_rwa_agent_assignments_agent_address'), 'rwa_agent_assignments', ['agent_address'], unique=False)
    op.create_index(op.f('ix_rwa_agent_assignments_status'), 'rwa_agent_assignments', ['status'], unique=False)
    op.create_index(op.f('ix_rwa_agent_assignments_completed_at'), 'rwa_agent_assignments', ['completed_at'], unique=False)

    # Derived by the rwa_state_indexer job
    op.create_table('outcomes',
    sa.Column('payment_id', sa.String(length=128), nullable=False),
    sa.Column('transition_id', sa.Integer(), nullable=True),
    sa.Column('outcome_type', sa.String(length=32), nullable=False),
    sa.Column('latency_ms', sa.Integer(), nullable=False),
    sa.Column('evidence', sa.JSON(), nullable=True),
    sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
    *_timestamps(),
    sa.PrimaryKeyConstraint('payment_id')
    )
    op.create_index(op.f('ix_outcomes_transition_id'), 'outcomes', ['transition_id'], unique=False)

    op.create_table('agent_performance_metrics',
    sa.Column('agent_address', EvmAddressType(), nullable=False),
    sa.Column('metric_type', sa.String(length=64), nullable=False),
    sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('value', sa.BigInteger(), nullable=False),
    sa.Column('details', sa.JSON(), nullable=True),
    *_timestamps(),
    sa.PrimaryKeyConstraint('agent_address', 'metric_type', 'recorded_at')
    )

    op.create_table('rwa_alerts',
    sa.Column('rwa_id', sa.String(length=128), nullable=False),
    sa.Column('alert_type', sa.String(length=32), nullable=False),
    sa.Column('state', sa.String(length=32), nullable=False),
    sa.Column('severity', sa.String(length=16), nullable=False),
    sa.Column('message', sa.Text(), nullable=False),
    sa.Column('details', sa.JSON(), nullable=True),
    *_timestamps(),
    sa.PrimaryKeyConstraint('rwa_id', 'alert_type', 'state')
    )

    op.create_table('rwa_metrics',
    sa.Column('metric_date', sa.String(length=10), nullable=False),
    sa.Column('total_transitions', sa.Integer(), nullable=False),
    sa.Column('state_distribution', sa.JSON(), nullable=False),
    sa.Column('role_distribution', sa.JSON(), nullable=False),
    *_timestamps(),
    sa.PrimaryKeyConstraint('metric_date')
    )


def downgrade() -> None:
    for table in (
        'rwa_metrics',
        'rwa_alerts',
        'agent_performance_metrics',
        'outcomes',
        'rwa_agent_assignments',
        'rwa_state_transitions',
        'rwa_state_machines',
    ):
        op.drop_table(table)
