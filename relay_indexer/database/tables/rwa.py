# relay_indexer/database/tables/rwa.py

from sqlalchemy import BigInteger, Column, DateTime, Enum, Integer, JSON, String, Text

from ..base import DBBaseModel
from ..types import EvmAddressType, EvmHashType, RwaAssignmentStatus


class DBRwaStateMachine(DBBaseModel):
    """Current state of one RWA workflow. Written by the marketplace; ``updated_at`` marks the last move."""
    __tablename__ = 'rwa_state_machines'

    rwa_id = Column(String(128), primary_key=True)
    current_state = Column(String(32), nullable=False, index=True)


class DBRwaStateTransition(DBBaseModel):
    __tablename__ = 'rwa_state_transitions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    rwa_id = Column(String(128), nullable=False, index=True)
    from_state = Column(String(32), nullable=False)
    to_state = Column(String(32), nullable=False)
    agent_address = Column(EvmAddressType(), nullable=True)
    agent_role = Column(String(64), nullable=True)
    payment_hash = Column(EvmHashType(), nullable=True)
    proof = Column(JSON, nullable=True)
    transitioned_at = Column(DateTime(timezone=True), nullable=False, index=True)


class DBRwaAgentAssignment(DBBaseModel):
    __tablename__ = 'rwa_agent_assignments'

    id = Column(Integer, primary_key=True, autoincrement=True)
    rwa_id = Column(String(128), nullable=False, index=True)
    agent_address = Column(EvmAddressType(), nullable=False, index=True)
    agent_role = Column(String(64), nullable=True)
    status = Column(Enum(RwaAssignmentStatus, native_enum=False), nullable=False,
                    default=RwaAssignmentStatus.ASSIGNED, index=True)
    assigned_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True, index=True)


class DBWorkflowOutcome(DBBaseModel):
    """Settled result of a paid workflow step, keyed by the payment that funded it"""
    __tablename__ = 'outcomes'

    payment_id = Column(String(128), primary_key=True)
    transition_id = Column(Integer, nullable=True, index=True)
    outcome_type = Column(String(32), nullable=False)
    latency_ms = Column(Integer, nullable=False, default=0)
    evidence = Column(JSON, nullable=True)
    occurred_at = Column(DateTime(timezone=True), nullable=False)


class DBAgentPerformanceMetric(DBBaseModel):
    __tablename__ = 'agent_performance_metrics'

    agent_address = Column(EvmAddressType(), primary_key=True)
    metric_type = Column(String(64), primary_key=True)
    recorded_at = Column(DateTime(timezone=True), primary_key=True)
    value = Column(BigInteger, nullable=False)
    details = Column(JSON, nullable=True)


class DBRwaAlert(DBBaseModel):
    """One alert per workflow, alert type and the state it was raised in"""
    __tablename__ = 'rwa_alerts'

    rwa_id = Column(String(128), primary_key=True)
    alert_type = Column(String(32), primary_key=True)
    state = Column(String(32), primary_key=True)
    severity = Column(String(16), nullable=False)
    message = Column(Text, nullable=False)
    details = Column(JSON, nullable=True)


class DBRwaDailyMetrics(DBBaseModel):
    __tablename__ = 'rwa_metrics'

    metric_date = Column(String(10), primary_key=True)
    total_transitions = Column(Integer, nullable=False, default=0)
    state_distribution = Column(JSON, nullable=False, default=dict)
    role_distribution = Column(JSON, nullable=False, default=dict)
