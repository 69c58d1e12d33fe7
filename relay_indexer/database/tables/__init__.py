# relay_indexer/database/tables/__init__.py

from .cursor import DBIndexerCursor
from .agents import DBAgent
from .feedback import DBFeedbackEvent
from .escrow import DBEscrowSession, DBEscrowSessionEvent, DBEscrowSessionAgent, DBAgentEarnings
from .payments import DBPaymentEvent, DBPayment
from .trades import DBTrade, DBPositionEvent
from .handoff import DBPendingTransaction, DBPendingTxStateHistory, DBOnChainTransaction
from .reputation import DBAgentReputation
from .failures import DBFailedEvent
from .rwa import (
    DBRwaStateMachine, DBRwaStateTransition, DBRwaAgentAssignment, DBWorkflowOutcome,
    DBAgentPerformanceMetric, DBRwaAlert, DBRwaDailyMetrics,
)

__all__ = [
    'DBIndexerCursor',
    'DBAgent',
    'DBFeedbackEvent',
    'DBEscrowSession',
    'DBEscrowSessionEvent',
    'DBEscrowSessionAgent',
    'DBAgentEarnings',
    'DBPaymentEvent',
    'DBPayment',
    'DBTrade',
    'DBPositionEvent',
    'DBPendingTransaction',
    'DBPendingTxStateHistory',
    'DBOnChainTransaction',
    'DBAgentReputation',
    'DBFailedEvent',
    'DBRwaStateMachine',
    'DBRwaStateTransition',
    'DBRwaAgentAssignment',
    'DBWorkflowOutcome',
    'DBAgentPerformanceMetric',
    'DBRwaAlert',
    'DBRwaDailyMetrics',
]
